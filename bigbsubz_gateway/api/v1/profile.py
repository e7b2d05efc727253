"""GET/PATCH /v1/profile - the caller's own profile"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from bigbsubz_gateway.api.v1.schemas import ProfileResponse, ProfileUpdateRequest
from bigbsubz_gateway.api.dependencies import get_backend, get_current_profile
from bigbsubz_gateway.domain.exceptions import BackendError
from bigbsubz_gateway.domain.models import UserProfile
from bigbsubz_gateway.infrastructure.backend.base import BackendClient

router = APIRouter()


def profile_response(profile: UserProfile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        name=profile.name,
        role=profile.role.value,
        balance=float(profile.balance),
        created_at=profile.created_at,
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(profile: UserProfile = Depends(get_current_profile)):
    return profile_response(profile)


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    request_body: ProfileUpdateRequest,
    profile: UserProfile = Depends(get_current_profile),
    backend: BackendClient = Depends(get_backend),
):
    """Only the display name is editable; role and balance stay with the platform"""
    try:
        updated = await backend.update_profile(profile.id, request_body.name)
    except BackendError as e:
        logging.error(f"Profile update failed: {e}", extra={"user_id": profile.id})
        raise HTTPException(status_code=503, detail="Backend service unavailable")

    if updated is None:
        raise HTTPException(status_code=404, detail="User profile not found")
    if not updated.email:
        updated.email = profile.email
    return profile_response(updated)
