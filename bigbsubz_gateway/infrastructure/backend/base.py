"""Contract the gateway expects from the backend platform: table CRUD, RPC and token checks"""

from decimal import Decimal
from typing import List, Optional, Protocol

from bigbsubz_gateway.domain.models import (
    AuthUser,
    CablePackage,
    CableProvider,
    TransactionRecord,
    UserProfile,
)


class BackendClient(Protocol):
    async def get_user(self, token: str) -> AuthUser:
        """Resolve a bearer token. Raises AuthenticationError when rejected."""
        ...

    async def get_package(self, package_id: str) -> Optional[CablePackage]: ...

    async def list_providers(self) -> List[CableProvider]: ...

    async def list_packages(self, provider_id: Optional[str] = None) -> List[CablePackage]: ...

    async def get_profile(self, user_id: str) -> Optional[UserProfile]: ...

    async def update_profile(self, user_id: str, name: str) -> Optional[UserProfile]: ...

    async def add_to_balance(self, user_id: str, amount: Decimal) -> None:
        """Call the add_to_balance procedure. Negative amounts debit."""
        ...

    async def insert_transaction(self, record: TransactionRecord) -> None: ...

    async def list_transactions(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> List[TransactionRecord]: ...

    async def aclose(self) -> None: ...
