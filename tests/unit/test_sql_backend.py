"""Unit tests for the SQL backend"""

import pytest
from decimal import Decimal
from jose import jwt
from bigbsubz_gateway.domain.exceptions import AuthenticationError, BackendError
from bigbsubz_gateway.domain.models import TransactionRecord, TransactionStatus, UserRole
from tests.conftest import ADMIN_ID, COMPACT_ID, CUSTOMER_ID, DSTV_ID, TEST_JWT_SECRET


async def test_get_user_from_signed_token(backend, make_token):
    user = await backend.get_user(make_token(CUSTOMER_ID, "ada@example.com"))

    assert user.id == CUSTOMER_ID
    assert user.email == "ada@example.com"


async def test_expired_token_rejected(backend, make_token):
    with pytest.raises(AuthenticationError):
        await backend.get_user(make_token(CUSTOMER_ID, expires_in=-60))


async def test_token_signed_with_other_secret_rejected(backend):
    token = jwt.encode({"sub": CUSTOMER_ID}, "someone-else", algorithm="HS256")

    with pytest.raises(AuthenticationError):
        await backend.get_user(token)


async def test_token_without_subject_rejected(backend):
    token = jwt.encode({"email": "x@example.com"}, TEST_JWT_SECRET, algorithm="HS256")

    with pytest.raises(AuthenticationError):
        await backend.get_user(token)


async def test_get_package_with_provider(backend):
    package = await backend.get_package(COMPACT_ID)

    assert package.name == "DStv Compact"
    assert package.amount == Decimal("10500")
    assert package.provider.code == "dstv"


async def test_unknown_package(backend):
    assert await backend.get_package("missing") is None


async def test_list_packages_cheapest_first(backend):
    packages = await backend.list_packages()
    assert [p.name for p in packages] == ["GOtv Smallie", "DStv Compact", "DStv Premium"]

    dstv_only = await backend.list_packages(DSTV_ID)
    assert {p.provider.id for p in dstv_only} == {DSTV_ID}


async def test_list_providers_by_name(backend):
    providers = await backend.list_providers()
    assert [p.name for p in providers] == ["DSTV", "GOtv"]


async def test_profile_roles(backend):
    assert (await backend.get_profile(CUSTOMER_ID)).role == UserRole.CUSTOMER
    assert (await backend.get_profile(ADMIN_ID)).role == UserRole.ADMIN
    assert await backend.get_profile("missing") is None


async def test_add_to_balance_is_relative(backend):
    await backend.add_to_balance(CUSTOMER_ID, Decimal("-10500"))
    await backend.add_to_balance(CUSTOMER_ID, Decimal("250.50"))

    profile = await backend.get_profile(CUSTOMER_ID)
    assert profile.balance == Decimal("9750.50")


async def test_add_to_balance_unknown_user(backend):
    with pytest.raises(BackendError):
        await backend.add_to_balance("missing", Decimal("-1"))


async def test_update_profile_name(backend):
    updated = await backend.update_profile(CUSTOMER_ID, "Ada O.")

    assert updated.name == "Ada O."
    assert (await backend.get_profile(CUSTOMER_ID)).name == "Ada O."
    assert await backend.update_profile("missing", "x") is None


async def test_transactions_listed_newest_first(backend):
    for reference in ("REF-1", "REF-2", "REF-3"):
        await backend.insert_transaction(
            TransactionRecord(
                user_id=CUSTOMER_ID,
                type="cable",
                amount=Decimal("1300"),
                status=TransactionStatus.SUCCESS,
                reference=reference,
                details={"package_name": "GOtv Smallie"},
            )
        )
    await backend.insert_transaction(
        TransactionRecord(
            user_id=ADMIN_ID,
            type="cable",
            amount=Decimal("1300"),
            status=TransactionStatus.FAILED,
            reference="REF-ADMIN",
        )
    )

    mine = await backend.list_transactions(CUSTOMER_ID)
    assert [t.reference for t in mine] == ["REF-3", "REF-2", "REF-1"]
    assert mine[0].details == {"package_name": "GOtv Smallie"}

    everyone = await backend.list_transactions(limit=2)
    assert len(everyone) == 2
    assert everyone[0].reference == "REF-ADMIN"


async def test_duplicate_reference_is_accepted(backend):
    """References are not unique; a retried request writes a second row"""
    record = TransactionRecord(
        user_id=CUSTOMER_ID,
        type="cable",
        amount=Decimal("1300"),
        status=TransactionStatus.SUCCESS,
        reference="SAME",
    )
    await backend.insert_transaction(record)
    await backend.insert_transaction(record)

    assert len(await backend.list_transactions(CUSTOMER_ID)) == 2
