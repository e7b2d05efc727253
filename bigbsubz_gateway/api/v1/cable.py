"""POST /v1/pay-cable - cable TV subscription purchase endpoint"""

import time
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from bigbsubz_gateway.api.v1.schemas import PayCableRequest, PayCableResponse, PurchaseData
from bigbsubz_gateway.api.dependencies import get_backend, get_cable_provider, get_current_user, get_request_id
from bigbsubz_gateway.domain.exceptions import (
    BalanceUpdateError,
    InsufficientBalanceError,
    NotFoundError,
    ProviderError,
    TransactionRecordError,
)
from bigbsubz_gateway.domain.models import AuthUser, PurchaseRequest
from bigbsubz_gateway.domain.purchase import CablePurchaseService
from bigbsubz_gateway.infrastructure.backend.base import BackendClient
from bigbsubz_gateway.infrastructure.clients.cable import CableProviderGateway
from bigbsubz_gateway.infrastructure.observability.logging import log_purchase
from bigbsubz_gateway.infrastructure.observability.metrics import (
    backend_failures_counter,
    ledger_inconsistency_counter,
    record_purchase,
)

router = APIRouter()


def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


async def parse_purchase(request: Request) -> PurchaseRequest | None:
    """Read the JSON body; None when a required field is missing or empty"""
    try:
        body = PayCableRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        return None

    if not body.package_id or not body.smart_card_number or not body.reference:
        return None

    return PurchaseRequest(
        package_id=body.package_id,
        smart_card_number=body.smart_card_number,
        reference=body.reference,
        customer_name=body.customer_name,
    )


@router.post("/pay-cable", response_model=PayCableResponse)
async def pay_cable(
    request: Request,
    user: AuthUser = Depends(get_current_user),
    backend: BackendClient = Depends(get_backend),
    provider: CableProviderGateway = Depends(get_cable_provider),
):
    """
    Buy a cable package for a smart card, paid from the caller's balance.

    Flow:
    1. Verify bearer token (401)
    2. Validate packageId, smartCardNumber, reference (400)
    3. Load package and profile (404)
    4. Check balance (400)
    5. Activate with provider, then debit and record (400 / 500)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    purchase = await parse_purchase(request)
    if purchase is None:
        return error_response(400, "Missing required parameters")

    log_extra = {"request_id": request_id, "user_id": user.id, "reference": purchase.reference}
    service = CablePurchaseService(backend, provider)

    try:
        receipt = await service.purchase(user.id, purchase)

    except NotFoundError as e:
        record_purchase("rejected", 0)
        logging.warning(f"Purchase rejected: {e}", extra=log_extra)
        return error_response(404, str(e))

    except InsufficientBalanceError as e:
        record_purchase("rejected", 0)
        logging.info(f"Purchase rejected: {e}", extra=log_extra)
        return error_response(400, str(e))

    except ProviderError as e:
        record_purchase("failed", 0)
        log_purchase(request_id, user.id, purchase.reference, "failed", 0, (time.time() - start_time) * 1000)
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})

    except BalanceUpdateError as e:
        backend_failures_counter.labels(operation="add_to_balance").inc()
        record_purchase("failed", 0)
        log_purchase(request_id, user.id, purchase.reference, "failed", 0, (time.time() - start_time) * 1000)
        return error_response(500, str(e))

    except TransactionRecordError as e:
        backend_failures_counter.labels(operation="insert_transaction").inc()
        ledger_inconsistency_counter.inc()
        record_purchase("failed", 0)
        log_purchase(request_id, user.id, purchase.reference, "failed", 0, (time.time() - start_time) * 1000)
        return error_response(500, str(e))

    except Exception as e:
        logging.exception(f"Cable subscription error: {e}", extra=log_extra)
        return error_response(500, "Internal server error", details=str(e))

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_purchase("success", receipt.amount)
    log_purchase(request_id, user.id, purchase.reference, "success", receipt.amount, duration_ms)

    return PayCableResponse(
        success=True,
        message=receipt.message,
        data=PurchaseData(
            amount=float(receipt.amount),
            smartcard=receipt.smartcard,
            customer=receipt.customer,
            provider=receipt.provider,
            package=receipt.package,
            duration=receipt.duration,
            reference=receipt.reference,
            date=receipt.date,
        ),
    )
