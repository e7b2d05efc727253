"""GET /v1/cable/providers and /v1/cable/packages - public catalog"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from bigbsubz_gateway.api.v1.schemas import (
    PackageListResponse,
    PackageSchema,
    ProviderListResponse,
    ProviderSchema,
)
from bigbsubz_gateway.api.dependencies import get_backend
from bigbsubz_gateway.domain.exceptions import BackendError
from bigbsubz_gateway.domain.models import CablePackage, CableProvider
from bigbsubz_gateway.infrastructure.backend.base import BackendClient

router = APIRouter()


def provider_schema(provider: CableProvider) -> ProviderSchema:
    return ProviderSchema(id=provider.id, code=provider.code, name=provider.name)


def package_schema(package: CablePackage) -> PackageSchema:
    return PackageSchema(
        id=package.id,
        name=package.name,
        amount=float(package.amount),
        duration=package.duration,
        provider=provider_schema(package.provider),
    )


@router.get("/cable/providers", response_model=ProviderListResponse)
async def list_providers(backend: BackendClient = Depends(get_backend)):
    try:
        providers = await backend.list_providers()
    except BackendError:
        raise HTTPException(status_code=503, detail="Backend service unavailable")
    return ProviderListResponse(providers=[provider_schema(p) for p in providers])


@router.get("/cable/packages", response_model=PackageListResponse)
async def list_packages(
    provider_id: Optional[str] = Query(None, description="Only packages of this provider"),
    backend: BackendClient = Depends(get_backend),
):
    """
    List purchasable packages, cheapest first.

    Returns:
        Packages with their provider embedded
    """
    try:
        packages = await backend.list_packages(provider_id)
    except BackendError:
        raise HTTPException(status_code=503, detail="Backend service unavailable")
    return PackageListResponse(packages=[package_schema(p) for p in packages])
