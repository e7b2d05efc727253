"""Supabase REST client (GoTrue + PostgREST) implementing the backend contract over httpx"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import httpx

from bigbsubz_gateway.config import settings
from bigbsubz_gateway.domain.exceptions import AuthenticationError, BackendError
from bigbsubz_gateway.domain.models import (
    AuthUser,
    CablePackage,
    CableProvider,
    TransactionRecord,
    TransactionStatus,
    UserProfile,
    UserRole,
)

logger = logging.getLogger(__name__)

SINGLE_OBJECT = "application/vnd.pgrst.object+json"
PACKAGE_SELECT = "*,cable_providers(*)"

# PostgREST answers 406 when an object request matches zero rows and 400 on
# malformed filters such as a non-uuid id.
MISSING_ROW_STATUSES = (400, 404, 406)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def provider_from_row(row: Dict[str, Any]) -> CableProvider:
    return CableProvider(id=str(row["id"]), code=row["code"], name=row["name"])


def package_from_row(row: Dict[str, Any]) -> CablePackage:
    return CablePackage(
        id=str(row["id"]),
        name=row["name"],
        amount=Decimal(str(row["amount"])),
        duration=str(row.get("duration") or ""),
        provider=provider_from_row(row["cable_providers"]),
    )


def profile_from_row(row: Dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=str(row["id"]),
        name=row.get("name") or "",
        role=UserRole(row.get("role") or UserRole.CUSTOMER.value),
        balance=Decimal(str(row.get("balance") or 0)),
        created_at=parse_timestamp(row.get("created_at")),
        email=row.get("email") or "",
    )


def transaction_from_row(row: Dict[str, Any]) -> TransactionRecord:
    return TransactionRecord(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        type=row["type"],
        amount=Decimal(str(row["amount"])),
        status=TransactionStatus(row["status"]),
        reference=row.get("reference") or "",
        provider=row.get("provider"),
        recipient=row.get("recipient"),
        details=row.get("details") or {},
        created_at=parse_timestamp(row.get("created_at")),
    )


def transaction_to_row(record: TransactionRecord) -> Dict[str, Any]:
    return {
        "user_id": record.user_id,
        "type": record.type,
        "amount": float(record.amount),
        "status": record.status.value,
        "reference": record.reference,
        "provider": record.provider,
        "recipient": record.recipient,
        "details": record.details,
    }


class SupabaseBackend:
    """Backend platform client authenticated with the service role key"""

    def __init__(
        self,
        base_url: str | None = None,
        service_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.supabase_service_role_key
        self.timeout = timeout or settings.http_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={
                "apikey": self.service_key,
                "Authorization": f"Bearer {self.service_key}",
            },
        )

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise BackendError(f"Backend timeout after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise BackendError(f"Backend unreachable: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Backend request failed",
                extra={"url": str(e.request.url), "status": e.response.status_code},
            )
            raise BackendError(
                f"Backend error: {e.response.status_code} {e.response.text}",
                status_code=e.response.status_code,
            ) from e

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from backend: {e}") from e

    async def _select_one(
        self,
        table: str,
        params: Dict[str, str],
        missing: Iterable[int] = MISSING_ROW_STATUSES,
    ) -> Optional[Dict[str, Any]]:
        response = await self._send(
            "GET", f"/rest/v1/{table}", params=params, headers={"Accept": SINGLE_OBJECT}
        )
        if response.status_code in missing:
            return None
        self._raise_for_status(response)
        row = self._json(response)
        if not isinstance(row, dict):
            raise BackendError("Invalid row from backend")
        return row

    async def _select_many(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        response = await self._send("GET", f"/rest/v1/{table}", params=params)
        self._raise_for_status(response)
        rows = self._json(response)
        if not isinstance(rows, list):
            raise BackendError("Invalid rows from backend")
        return rows

    async def get_user(self, token: str) -> AuthUser:
        response = await self._send(
            "GET", "/auth/v1/user", headers={"Authorization": f"Bearer {token}"}
        )
        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid token")
        self._raise_for_status(response)
        data = self._json(response)
        if not isinstance(data, dict):
            raise BackendError("Invalid user payload from backend")
        if not data.get("id"):
            raise AuthenticationError("Invalid token")
        return AuthUser(id=str(data["id"]), email=data.get("email") or "")

    async def get_package(self, package_id: str) -> Optional[CablePackage]:
        row = await self._select_one(
            "cable_packages", {"select": PACKAGE_SELECT, "id": f"eq.{package_id}"}
        )
        if row is None or not row.get("cable_providers"):
            return None
        try:
            return package_from_row(row)
        except (KeyError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendError(f"Invalid package data from backend: {e}") from e

    async def list_providers(self) -> List[CableProvider]:
        rows = await self._select_many("cable_providers", {"select": "*", "order": "name.asc"})
        try:
            return [provider_from_row(row) for row in rows]
        except (KeyError, TypeError) as e:
            raise BackendError(f"Invalid provider data from backend: {e}") from e

    async def list_packages(self, provider_id: Optional[str] = None) -> List[CablePackage]:
        params = {"select": PACKAGE_SELECT, "order": "amount.asc"}
        if provider_id:
            params["provider_id"] = f"eq.{provider_id}"
        rows = await self._select_many("cable_packages", params)
        try:
            return [package_from_row(row) for row in rows if row.get("cable_providers")]
        except (KeyError, ValueError, TypeError, AttributeError, ArithmeticError) as e:
            raise BackendError(f"Invalid package data from backend: {e}") from e

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        row = await self._select_one("profiles", {"select": "*", "id": f"eq.{user_id}"})
        if row is None:
            return None
        try:
            return profile_from_row(row)
        except (KeyError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendError(f"Invalid profile data from backend: {e}") from e

    async def update_profile(self, user_id: str, name: str) -> Optional[UserProfile]:
        response = await self._send(
            "PATCH",
            "/rest/v1/profiles",
            params={"id": f"eq.{user_id}"},
            json={"name": name},
            headers={"Accept": SINGLE_OBJECT, "Prefer": "return=representation"},
        )
        if response.status_code in MISSING_ROW_STATUSES:
            return None
        self._raise_for_status(response)
        try:
            return profile_from_row(self._json(response))
        except (KeyError, ValueError, TypeError, AttributeError, ArithmeticError) as e:
            raise BackendError(f"Invalid profile data from backend: {e}") from e

    async def add_to_balance(self, user_id: str, amount: Decimal) -> None:
        response = await self._send(
            "POST",
            "/rest/v1/rpc/add_to_balance",
            json={"user_uuid": user_id, "amount_to_add": float(amount)},
        )
        self._raise_for_status(response)

    async def insert_transaction(self, record: TransactionRecord) -> None:
        response = await self._send(
            "POST",
            "/rest/v1/transactions",
            json=transaction_to_row(record),
            headers={"Prefer": "return=minimal"},
        )
        self._raise_for_status(response)

    async def list_transactions(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> List[TransactionRecord]:
        params = {"select": "*", "order": "created_at.desc", "limit": str(limit)}
        if user_id:
            params["user_id"] = f"eq.{user_id}"
        rows = await self._select_many("transactions", params)
        try:
            return [transaction_from_row(row) for row in rows]
        except (KeyError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendError(f"Invalid transaction data from backend: {e}") from e

    async def aclose(self) -> None:
        await self._client.aclose()
