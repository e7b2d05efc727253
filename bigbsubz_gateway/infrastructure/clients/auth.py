"""GoTrue session client: password sign-in, sign-up, sign-out, refresh and auth-change events"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

from bigbsubz_gateway.config import settings
from bigbsubz_gateway.domain.exceptions import AuthenticationError, BackendError
from bigbsubz_gateway.domain.models import AuthUser, UserProfile
from bigbsubz_gateway.infrastructure.backend.supabase import SINGLE_OBJECT, profile_from_row

logger = logging.getLogger(__name__)

# Refresh a little before the platform would reject the token
EXPIRY_MARGIN_SECONDS = 10


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    expires_at: float
    user: AuthUser

    def is_expired(self, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        return self.expires_at - EXPIRY_MARGIN_SECONDS <= now


AuthListener = Callable[[AuthEvent, Optional[AuthSession]], None]


class Subscription:
    """Handle returned by on_auth_state_change"""

    def __init__(self, listeners: List[AuthListener], callback: AuthListener):
        self._listeners = listeners
        self.callback = callback

    def unsubscribe(self) -> None:
        if self.callback in self._listeners:
            self._listeners.remove(self.callback)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if not isinstance(data, dict):
        return f"HTTP {response.status_code}"
    return (
        data.get("error_description")
        or data.get("msg")
        or data.get("message")
        or data.get("error")
        or f"HTTP {response.status_code}"
    )


def session_from_payload(data: Dict[str, Any], now: float | None = None) -> AuthSession:
    now = time.time() if now is None else now
    user = data["user"]
    expires_at = data.get("expires_at") or now + int(data.get("expires_in", 3600))
    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token") or "",
        expires_at=float(expires_at),
        user=AuthUser(id=str(user["id"]), email=user.get("email") or ""),
    )


class SupabaseAuthClient:
    """Client-side session holder talking to the platform with the anon key"""

    def __init__(
        self,
        base_url: str | None = None,
        anon_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.supabase_anon_key
        self.timeout = timeout or settings.http_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={"apikey": self.anon_key},
        )
        self._session: Optional[AuthSession] = None
        self._listeners: List[AuthListener] = []

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                logger.exception("Auth listener failed", extra={"event": event.value})

    def _bearer(self) -> Dict[str, str]:
        token = self._session.access_token if self._session else self.anon_key
        return {"Authorization": f"Bearer {token}"}

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise BackendError(f"Auth service timeout after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise BackendError(f"Auth service unreachable: {e}") from e

    def _set_session(self, session: Optional[AuthSession], event: AuthEvent) -> None:
        self._session = session
        self._emit(event, session)

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        response = await self._send(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code >= 400:
            raise AuthenticationError(_error_message(response))
        try:
            session = session_from_payload(response.json())
        except (KeyError, ValueError, TypeError) as e:
            raise BackendError(f"Invalid session payload: {e}") from e
        self._set_session(session, AuthEvent.SIGNED_IN)
        return session

    async def sign_up(self, email: str, password: str, data: Dict[str, Any] | None = None) -> AuthUser:
        """Register an account; signs in immediately when the platform auto-confirms"""
        response = await self._send(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password, "data": data or {}},
        )
        if response.status_code >= 400:
            raise AuthenticationError(_error_message(response))

        try:
            payload = response.json()
            if payload.get("access_token"):
                session = session_from_payload(payload)
                self._set_session(session, AuthEvent.SIGNED_IN)
                return session.user
            user = payload.get("user") or payload
            return AuthUser(id=str(user["id"]), email=user.get("email") or email)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise BackendError(f"Invalid sign-up payload: {e}") from e

    async def sign_out(self) -> None:
        if self._session is None:
            return
        headers = self._bearer()
        self._set_session(None, AuthEvent.SIGNED_OUT)

        response = await self._send("POST", "/auth/v1/logout", headers=headers)
        # An already revoked token is as good as a successful logout
        if response.status_code >= 400 and response.status_code not in (401, 403, 404):
            raise BackendError(f"Logout failed: {_error_message(response)}", status_code=response.status_code)

    async def refresh_session(self) -> AuthSession:
        if self._session is None or not self._session.refresh_token:
            raise AuthenticationError("No session to refresh")

        response = await self._send(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        if response.status_code >= 400:
            self._set_session(None, AuthEvent.SIGNED_OUT)
            raise AuthenticationError(_error_message(response))

        try:
            session = session_from_payload(response.json())
        except (KeyError, ValueError, TypeError) as e:
            raise BackendError(f"Invalid session payload: {e}") from e
        self._set_session(session, AuthEvent.TOKEN_REFRESHED)
        return session

    async def get_session(self) -> Optional[AuthSession]:
        """Current session, refreshed first when its access token has expired"""
        if self._session is not None and self._session.is_expired():
            try:
                return await self.refresh_session()
            except AuthenticationError:
                return None
        return self._session

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Read the caller's own profile row with their access token"""
        response = await self._send(
            "GET",
            "/rest/v1/profiles",
            params={"select": "*", "id": f"eq.{user_id}"},
            headers={**self._bearer(), "Accept": SINGLE_OBJECT},
        )
        if response.status_code in (404, 406):
            return None
        if response.status_code >= 400:
            raise BackendError(f"Profile fetch failed: {_error_message(response)}", status_code=response.status_code)
        try:
            profile = profile_from_row(response.json())
        except (KeyError, ValueError, TypeError, AttributeError, ArithmeticError) as e:
            raise BackendError(f"Invalid profile payload: {e}") from e
        if self._session is not None and not profile.email:
            profile.email = self._session.user.email
        return profile

    async def update_profile(self, user_id: str, name: str) -> None:
        response = await self._send(
            "PATCH",
            "/rest/v1/profiles",
            params={"id": f"eq.{user_id}"},
            json={"name": name},
            headers={**self._bearer(), "Prefer": "return=minimal"},
        )
        if response.status_code >= 400:
            raise BackendError(f"Profile update failed: {_error_message(response)}", status_code=response.status_code)

    async def aclose(self) -> None:
        await self._client.aclose()
