"""Session mirror for front ends: who is signed in, with which profile, and whether it is still loading"""

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

from bigbsubz_gateway.config import settings
from bigbsubz_gateway.domain.exceptions import AuthenticationError, DomainException
from bigbsubz_gateway.domain.models import UserProfile
from bigbsubz_gateway.infrastructure.clients.auth import (
    AuthEvent,
    AuthSession,
    SupabaseAuthClient,
    Subscription,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """User-facing toast"""

    title: str
    description: str
    variant: str = "default"  # default | destructive


def log_notice(notice: Notice) -> None:
    level = logging.WARNING if notice.variant == "destructive" else logging.INFO
    logger.log(level, f"{notice.title}: {notice.description}")


class AuthContext:
    """
    Mirrors the platform session into plain fields.

    The auth client's event stream (sign-in, sign-out, token refresh) drives
    `session`; every non-empty session triggers a profile load that fills
    `user`. `is_authenticated` needs both. While loading lasts longer than
    the soft timeout, `show_refresh_prompt` turns on so the UI can offer a
    manual refresh; the pending request keeps running.
    """

    def __init__(
        self,
        auth: SupabaseAuthClient,
        notifier: Callable[[Notice], None] = log_notice,
        soft_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.auth = auth
        self.notifier = notifier
        self.soft_timeout = settings.auth_soft_timeout_seconds if soft_timeout is None else soft_timeout
        self.clock = clock

        self.user: Optional[UserProfile] = None
        self.session: Optional[AuthSession] = None
        self._is_loading = True
        self._loading_since: Optional[float] = clock()
        self._subscription: Optional[Subscription] = None
        self._active = False
        self._pending: Set[asyncio.Task] = set()

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.session is not None

    @property
    def show_refresh_prompt(self) -> bool:
        if not self._is_loading or self._loading_since is None:
            return False
        return self.clock() - self._loading_since >= self.soft_timeout

    def _set_loading(self, value: bool) -> None:
        if value and not self._is_loading:
            self._loading_since = self.clock()
        elif not value:
            self._loading_since = None
        self._is_loading = value

    async def start(self) -> None:
        """Listen for auth changes first, then pick up any existing session"""
        self._active = True
        self._set_loading(True)
        self._subscription = self.auth.on_auth_state_change(self._on_auth_change)

        try:
            session = await self.auth.get_session()
        except DomainException as e:
            logger.error(f"Session check error: {e}")
            if self._active:
                self.user = None
                self._set_loading(False)
            return

        self._handle_session(session)

    async def close(self) -> None:
        self._active = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def wait_idle(self) -> None:
        """Wait for profile loads scheduled by auth events"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_auth_change(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        logger.debug(
            "Auth state changed",
            extra={"event": event.value, "user_id": session.user.id if session else None},
        )
        self._handle_session(session)

    def _handle_session(self, session: Optional[AuthSession]) -> None:
        if not self._active:
            return

        self.session = session
        if session is None:
            self.user = None
            self._set_loading(False)
            return

        # Loaded outside the event callback so listeners never await
        task = asyncio.get_running_loop().create_task(self._refresh_profile(session.user.id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _refresh_profile(self, user_id: str) -> None:
        try:
            await self._load_profile(user_id)
        finally:
            if self._active:
                self._set_loading(False)

    async def _load_profile(self, user_id: str) -> Optional[UserProfile]:
        try:
            profile = await self.auth.get_profile(user_id)
        except DomainException as e:
            logger.error(f"Failed to fetch user profile: {e}", extra={"user_id": user_id})
            return None

        if profile is None:
            logger.warning("No profile row for user", extra={"user_id": user_id})
            return None

        if not profile.email and self.session is not None:
            profile = dataclasses.replace(profile, email=self.session.user.email)
        if self._active:
            self.user = profile
        return profile

    async def login(self, email: str, password: str) -> UserProfile:
        self._set_loading(True)
        try:
            session = await self.auth.sign_in_with_password(email, password)
            self.session = session

            profile = await self._load_profile(session.user.id)
            if profile is None:
                raise AuthenticationError("Could not retrieve user profile after login")
            self.user = profile

            self.notifier(Notice("Login successful", "Welcome back!"))
            return profile
        except DomainException as e:
            logger.error(f"Login failed: {e}")
            self.notifier(
                Notice(
                    "Login failed",
                    str(e) or "Please check your credentials and try again",
                    "destructive",
                )
            )
            raise
        finally:
            self._set_loading(False)

    async def register(self, email: str, password: str, name: str) -> None:
        self._set_loading(True)
        try:
            await self.auth.sign_up(email, password, data={"name": name})
            self.notifier(Notice("Registration successful", "Welcome to BigBSubz!"))
        except DomainException as e:
            logger.error(f"Registration error: {e}")
            self.notifier(
                Notice(
                    "Registration failed",
                    str(e) or "Please try again with a different email",
                    "destructive",
                )
            )
            raise
        finally:
            self._set_loading(False)

    async def logout(self) -> None:
        """Sign out; failures are reported as a notice instead of raised"""
        try:
            await self.auth.sign_out()
        except DomainException as e:
            self.notifier(Notice("Logout failed", str(e) or "Something went wrong", "destructive"))
            return

        self.user = None
        self.session = None
        self.notifier(Notice("Logged out", "You have been successfully logged out"))

    async def update_user_profile(self, **changes: Any) -> None:
        """Persist the display name and merge the changes into the local user"""
        if self.user is None:
            return

        try:
            if "name" in changes:
                await self.auth.update_profile(self.user.id, changes["name"])
        except DomainException as e:
            self.notifier(Notice("Update failed", str(e) or "Something went wrong", "destructive"))
            return

        # Keys the profile has no field for are ignored
        fields = {f.name for f in dataclasses.fields(self.user)}
        self.user = dataclasses.replace(self.user, **{k: v for k, v in changes.items() if k in fields})
        self.notifier(Notice("Profile updated", "Your profile has been updated successfully"))
