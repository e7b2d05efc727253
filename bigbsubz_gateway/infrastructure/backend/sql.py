"""SQLAlchemy implementation of the backend contract for local development and tests.

Tokens are expected to be HS256 JWTs signed with the platform's JWT secret, which
is how the hosted platform signs its own access tokens; only verification is done
here, issuing sessions stays with the platform.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

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
from bigbsubz_gateway.infrastructure.database.models import (
    CablePackageRow,
    CableProviderRow,
    Profile,
    TransactionRow,
)
from bigbsubz_gateway.infrastructure.database.repositories import (
    CatalogRepository,
    ProfileRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)


def _provider(row: CableProviderRow) -> CableProvider:
    return CableProvider(id=row.id, code=row.code, name=row.name)


def _package(row: CablePackageRow) -> CablePackage:
    return CablePackage(
        id=row.id,
        name=row.name,
        amount=Decimal(row.amount),
        duration=row.duration or "",
        provider=_provider(row.provider),
    )


def _profile(row: Profile) -> UserProfile:
    return UserProfile(
        id=row.id,
        name=row.name or "",
        role=UserRole(row.role),
        balance=Decimal(row.balance),
        created_at=row.created_at,
        email=row.email or "",
    )


def _transaction(row: TransactionRow) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        amount=Decimal(row.amount),
        status=TransactionStatus(row.status),
        reference=row.reference,
        provider=row.provider,
        recipient=row.recipient,
        details=row.details or {},
        created_at=row.created_at,
    )


class SqlBackend:
    """Backend contract served from a relational database"""

    def __init__(
        self,
        session_factory: sessionmaker,
        jwt_secret: str | None = None,
        jwt_algorithm: str | None = None,
    ):
        self.session_factory = session_factory
        self.jwt_secret = jwt_secret or settings.jwt_secret
        self.jwt_algorithm = jwt_algorithm or settings.jwt_algorithm

    async def get_user(self, token: str) -> AuthUser:
        try:
            claims = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm],
                options={"verify_aud": False},
            )
        except JWTError as e:
            raise AuthenticationError("Invalid token") from e

        user_id = claims.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token")
        return AuthUser(id=str(user_id), email=claims.get("email") or "")

    async def get_package(self, package_id: str) -> Optional[CablePackage]:
        try:
            with self.session_factory() as db:
                row = CatalogRepository(db).get_package(package_id)
                return _package(row) if row else None
        except SQLAlchemyError as e:
            raise BackendError(f"Package lookup failed: {e}") from e

    async def list_providers(self) -> List[CableProvider]:
        try:
            with self.session_factory() as db:
                return [_provider(row) for row in CatalogRepository(db).list_providers()]
        except SQLAlchemyError as e:
            raise BackendError(f"Provider listing failed: {e}") from e

    async def list_packages(self, provider_id: Optional[str] = None) -> List[CablePackage]:
        try:
            with self.session_factory() as db:
                return [_package(row) for row in CatalogRepository(db).list_packages(provider_id)]
        except SQLAlchemyError as e:
            raise BackendError(f"Package listing failed: {e}") from e

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        try:
            with self.session_factory() as db:
                row = ProfileRepository(db).get_by_id(user_id)
                return _profile(row) if row else None
        except SQLAlchemyError as e:
            raise BackendError(f"Profile lookup failed: {e}") from e

    async def update_profile(self, user_id: str, name: str) -> Optional[UserProfile]:
        try:
            with self.session_factory() as db:
                row = ProfileRepository(db).rename(user_id, name)
                if row is None:
                    return None
                db.commit()
                db.refresh(row)
                return _profile(row)
        except SQLAlchemyError as e:
            raise BackendError(f"Profile update failed: {e}") from e

    async def add_to_balance(self, user_id: str, amount: Decimal) -> None:
        try:
            with self.session_factory() as db:
                matched = ProfileRepository(db).add_to_balance(user_id, amount)
                if not matched:
                    db.rollback()
                    logger.warning("add_to_balance matched no profile", extra={"user_id": user_id})
                    raise BackendError(f"No profile for user {user_id}")
                db.commit()
        except SQLAlchemyError as e:
            raise BackendError(f"Balance update failed: {e}") from e

    async def insert_transaction(self, record: TransactionRecord) -> None:
        try:
            with self.session_factory() as db:
                TransactionRepository(db).create(record)
                db.commit()
        except SQLAlchemyError as e:
            raise BackendError(f"Transaction insert failed: {e}") from e

    async def list_transactions(
        self, user_id: Optional[str] = None, limit: int = 50
    ) -> List[TransactionRecord]:
        try:
            with self.session_factory() as db:
                rows = TransactionRepository(db).list_recent(user_id, limit)
                return [_transaction(row) for row in rows]
        except SQLAlchemyError as e:
            raise BackendError(f"Transaction listing failed: {e}") from e

    async def aclose(self) -> None:
        # Sessions are scoped to each call
        return None
