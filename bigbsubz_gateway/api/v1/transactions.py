"""GET /v1/transactions and /v1/admin/transactions - purchase history"""

from fastapi import APIRouter, Depends, HTTPException, Query

from bigbsubz_gateway.api.v1.schemas import TransactionItem, TransactionListResponse
from bigbsubz_gateway.api.dependencies import get_backend, get_current_user, require_roles
from bigbsubz_gateway.config import settings
from bigbsubz_gateway.domain.exceptions import BackendError
from bigbsubz_gateway.domain.models import AuthUser, TransactionRecord, UserProfile, UserRole
from bigbsubz_gateway.infrastructure.backend.base import BackendClient

router = APIRouter()


def transaction_item(record: TransactionRecord) -> TransactionItem:
    return TransactionItem(
        id=record.id,
        user_id=record.user_id,
        type=record.type,
        amount=float(record.amount),
        status=record.status.value,
        reference=record.reference,
        provider=record.provider,
        recipient=record.recipient,
        details=record.details,
        created_at=record.created_at,
    )


@router.get("/transactions", response_model=TransactionListResponse)
async def get_my_transactions(
    user: AuthUser = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
):
    """
    Retrieve the caller's recent transactions, newest first.

    Returns:
        Successful and failed purchase attempts
    """
    try:
        records = await backend.list_transactions(user.id, limit=settings.history_limit)
    except BackendError:
        raise HTTPException(status_code=503, detail="Backend service unavailable")
    return TransactionListResponse(transactions=[transaction_item(r) for r in records])


@router.get("/admin/transactions", response_model=TransactionListResponse)
async def get_all_transactions(
    user_id: str | None = Query(None, description="Restrict to one user"),
    admin: UserProfile = Depends(require_roles(UserRole.ADMIN)),
    backend: BackendClient = Depends(get_backend),
):
    """Admin view over every account's transactions"""
    try:
        records = await backend.list_transactions(user_id, limit=settings.history_limit)
    except BackendError:
        raise HTTPException(status_code=503, detail="Backend service unavailable")
    return TransactionListResponse(transactions=[transaction_item(r) for r in records])
