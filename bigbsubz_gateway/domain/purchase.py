"""Cable subscription purchase: balance check, provider activation, debit and ledger write"""

import logging
from datetime import datetime, timezone
from typing import Callable

from bigbsubz_gateway.domain.exceptions import (
    BackendError,
    BalanceUpdateError,
    InsufficientBalanceError,
    PackageNotFoundError,
    ProfileNotFoundError,
    ProviderError,
    TransactionRecordError,
)
from bigbsubz_gateway.domain.models import (
    PROVIDER_FAILURE_MESSAGE,
    CablePackage,
    PurchaseReceipt,
    PurchaseRequest,
    TransactionRecord,
    TransactionStatus,
)
from bigbsubz_gateway.infrastructure.backend.base import BackendClient
from bigbsubz_gateway.infrastructure.clients.cable import CableProviderGateway

logger = logging.getLogger(__name__)

TRANSACTION_TYPE = "cable"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CablePurchaseService:
    """
    Runs one purchase attempt for an authenticated user.

    The balance check and the debit are separate backend calls with nothing
    held between them, so two concurrent attempts on one account can both
    pass the check. The debit and the ledger write are also independent: if
    the write fails the balance stays debited and the gap is only logged.
    """

    def __init__(
        self,
        backend: BackendClient,
        provider: CableProviderGateway,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.backend = backend
        self.provider = provider
        self.clock = clock

    async def purchase(self, user_id: str, request: PurchaseRequest) -> PurchaseReceipt:
        """
        Flow:
        1. Load the package with its provider
        2. Load the buyer's profile
        3. Require balance >= package amount
        4. Ask the provider to activate the package
        5. On success debit the balance, then record a success transaction
        6. On failure record a failed transaction and raise ProviderError

        Raises:
            PackageNotFoundError, ProfileNotFoundError, InsufficientBalanceError,
            ProviderError, BalanceUpdateError, TransactionRecordError, BackendError
        """
        package = await self.backend.get_package(request.package_id)
        if package is None:
            raise PackageNotFoundError("Cable package not found")

        profile = await self.backend.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError("User profile not found")

        if profile.balance < package.amount:
            raise InsufficientBalanceError("Insufficient balance")

        try:
            activated = await self.provider.subscribe(
                package, request.smart_card_number, request.reference
            )
        except ProviderError as e:
            logger.warning(
                f"Cable provider call failed: {e}",
                extra={"user_id": user_id, "reference": request.reference},
            )
            activated = False

        if not activated:
            await self._record_failure(user_id, request, package)
            raise ProviderError(PROVIDER_FAILURE_MESSAGE)

        try:
            await self.backend.add_to_balance(user_id, -package.amount)
        except BackendError as e:
            logger.error(
                f"Balance update error: {e}",
                extra={"user_id": user_id, "reference": request.reference, "step": "balance_update"},
            )
            raise BalanceUpdateError("Failed to update user balance") from e

        completed_at = self.clock()
        record = TransactionRecord(
            user_id=user_id,
            type=TRANSACTION_TYPE,
            amount=package.amount,
            status=TransactionStatus.SUCCESS,
            reference=request.reference,
            provider=package.provider.code,
            recipient=request.smart_card_number,
            details={
                "smart_card_number": request.smart_card_number,
                "customer_name": request.customer_display_name,
                "provider_name": package.provider.name,
                "package_name": package.name,
                "duration": package.duration,
                "transaction_date": completed_at.isoformat(),
            },
        )
        try:
            await self.backend.insert_transaction(record)
        except BackendError as e:
            logger.error(
                f"Transaction record error: {e}",
                extra={
                    "user_id": user_id,
                    "reference": request.reference,
                    "amount": str(package.amount),
                    "step": "transaction_record",
                },
            )
            raise TransactionRecordError("Failed to record transaction") from e

        return PurchaseReceipt(
            amount=package.amount,
            smartcard=request.smart_card_number,
            customer=request.customer_display_name,
            provider=package.provider.name,
            package=package.name,
            duration=package.duration,
            reference=request.reference,
            date=completed_at,
        )

    async def _record_failure(self, user_id: str, request: PurchaseRequest, package: CablePackage) -> None:
        record = TransactionRecord(
            user_id=user_id,
            type=TRANSACTION_TYPE,
            amount=package.amount,
            status=TransactionStatus.FAILED,
            reference=request.reference,
            provider=package.provider.code,
            recipient=request.smart_card_number,
            details={
                "smart_card_number": request.smart_card_number,
                "customer_name": request.customer_display_name,
                "provider_name": package.provider.name,
                "package_name": package.name,
                "error": PROVIDER_FAILURE_MESSAGE,
            },
        )
        try:
            await self.backend.insert_transaction(record)
        except BackendError as e:
            # The failure response goes out regardless
            logger.error(
                f"Transaction record error: {e}",
                extra={"user_id": user_id, "reference": request.reference, "step": "transaction_record"},
            )
