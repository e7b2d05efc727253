"""Dependency injection for FastAPI endpoints"""

import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException, Request

from bigbsubz_gateway.config import settings
from bigbsubz_gateway.domain.access import is_role_allowed
from bigbsubz_gateway.domain.exceptions import AuthenticationError, BackendError
from bigbsubz_gateway.domain.models import AuthUser, UserProfile, UserRole
from bigbsubz_gateway.infrastructure.backend.base import BackendClient
from bigbsubz_gateway.infrastructure.backend.supabase import SupabaseBackend
from bigbsubz_gateway.infrastructure.clients.cable import (
    CableProviderGateway,
    HttpCableProvider,
    SimulatedCableProvider,
)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


async def get_backend() -> AsyncIterator[BackendClient]:
    """Provide a backend platform client for the configured backend"""
    if settings.backend == "sql":
        from bigbsubz_gateway.infrastructure.backend.sql import SqlBackend
        from bigbsubz_gateway.infrastructure.database.session import SessionLocal

        backend: BackendClient = SqlBackend(SessionLocal)
    else:
        backend = SupabaseBackend()
    try:
        yield backend
    finally:
        await backend.aclose()


def get_cable_provider() -> CableProviderGateway:
    """Provide the configured cable provider gateway"""
    if settings.cable_provider_mode == "http":
        return HttpCableProvider()
    return SimulatedCableProvider()


def bearer_token(authorization: Optional[str]) -> str:
    """Strip the Bearer prefix; raises 401 when the header is absent"""
    if not authorization:
        raise HTTPException(status_code=401, detail="No authorization header provided")
    return authorization.replace("Bearer ", "", 1).strip()


async def get_current_user(
    authorization: Optional[str] = Header(None),
    backend: BackendClient = Depends(get_backend),
) -> AuthUser:
    """Verify the caller's bearer token with the backend platform"""
    token = bearer_token(authorization)
    try:
        return await backend.get_user(token)
    except AuthenticationError:
        raise HTTPException(status_code=401, detail="Invalid token")
    except BackendError as e:
        # A token the platform could not confirm is treated as invalid
        logging.warning(f"Token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_profile(
    user: AuthUser = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
) -> UserProfile:
    try:
        profile = await backend.get_profile(user.id)
    except BackendError:
        raise HTTPException(status_code=503, detail="Backend service unavailable")
    if profile is None:
        raise HTTPException(status_code=404, detail="User profile not found")
    if not profile.email:
        profile.email = user.email
    return profile


def require_roles(*roles: UserRole):
    """Dependency factory admitting only profiles with one of the given roles"""

    async def guard(profile: UserProfile = Depends(get_current_profile)) -> UserProfile:
        if not is_role_allowed(profile.role, roles):
            raise HTTPException(status_code=403, detail="Forbidden")
        return profile

    return guard
