"""
E2E tests walking customer journeys through the API and the purchase service.

Journeys:
- repeat buyer: buys until the balance runs out
- retrying client: resends the same reference after a success
- double tap: two concurrent purchases on one account
- admin: audits every account's purchases
"""

import asyncio
import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from bigbsubz_gateway.domain.exceptions import InsufficientBalanceError
from bigbsubz_gateway.domain.models import CablePackage, PurchaseRequest
from bigbsubz_gateway.domain.purchase import CablePurchaseService
from tests.conftest import ADMIN_ID, COMPACT_ID, CUSTOMER_ID, PADI_ID


class YieldingProvider:
    """Activates every package but yields to the event loop first"""

    async def subscribe(self, package: CablePackage, smart_card_number: str, reference: str) -> bool:
        await asyncio.sleep(0)
        return True


@pytest.mark.integration
def test_repeat_buyer_runs_out_of_balance(client: TestClient, auth_headers):
    """
    Balance 20000, Compact costs 10500
    Expected: first purchase succeeds, second is refused for balance
    """
    headers = auth_headers(CUSTOMER_ID)
    body = {"packageId": COMPACT_ID, "smartCardNumber": "7023456789", "reference": "R-1"}

    first = client.post("/v1/pay-cable", json=body, headers=headers)
    second = client.post("/v1/pay-cable", json={**body, "reference": "R-2"}, headers=headers)

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json()["error"] == "Insufficient balance"
    assert client.get("/v1/profile", headers=headers).json()["balance"] == 9500


@pytest.mark.integration
def test_retrying_client_is_charged_twice(client: TestClient, auth_headers):
    """
    Same reference sent twice for a cheap package
    Expected: both succeed, references are not deduplicated
    """
    headers = auth_headers(CUSTOMER_ID)
    body = {"packageId": PADI_ID, "smartCardNumber": "1234567890", "reference": "RETRY-1"}

    assert client.post("/v1/pay-cable", json=body, headers=headers).status_code == 200
    assert client.post("/v1/pay-cable", json=body, headers=headers).status_code == 200

    history = client.get("/v1/transactions", headers=headers).json()["transactions"]
    assert [t["reference"] for t in history] == ["RETRY-1", "RETRY-1"]
    assert client.get("/v1/profile", headers=headers).json()["balance"] == 20000 - 2 * 1300


@pytest.mark.integration
async def test_double_tap_can_overdraw(backend):
    """
    Two concurrent Compact purchases against a 20000 balance
    Expected: both pass the balance check before either debits
    """
    service = CablePurchaseService(backend, YieldingProvider())

    def request(reference: str) -> PurchaseRequest:
        return PurchaseRequest(package_id=COMPACT_ID, smart_card_number="7023456789", reference=reference)

    receipts = await asyncio.gather(
        service.purchase(CUSTOMER_ID, request("TAP-1")),
        service.purchase(CUSTOMER_ID, request("TAP-2")),
    )

    assert len(receipts) == 2
    profile = await backend.get_profile(CUSTOMER_ID)
    assert profile.balance == Decimal("-1000")

    # Sequential attempts still see the overdrawn balance
    with pytest.raises(InsufficientBalanceError):
        await service.purchase(CUSTOMER_ID, request("TAP-3"))


@pytest.mark.integration
def test_admin_audits_all_purchases(client: TestClient, auth_headers, provider):
    """
    One success and one provider failure from a customer
    Expected: admin sees both rows, newest first
    """
    customer = auth_headers(CUSTOMER_ID)
    body = {"packageId": PADI_ID, "smartCardNumber": "1234567890"}

    client.post("/v1/pay-cable", json={**body, "reference": "OK-1"}, headers=customer)
    provider.success_rate = 0.0
    client.post("/v1/pay-cable", json={**body, "reference": "FAIL-1"}, headers=customer)

    rows = client.get("/v1/admin/transactions", headers=auth_headers(ADMIN_ID)).json()["transactions"]
    assert [(r["reference"], r["status"]) for r in rows] == [("FAIL-1", "failed"), ("OK-1", "success")]

    scoped = client.get(
        "/v1/admin/transactions", params={"user_id": ADMIN_ID}, headers=auth_headers(ADMIN_ID)
    ).json()["transactions"]
    assert scoped == []
