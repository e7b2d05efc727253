"""Data access layer for profiles, catalog and transactions"""

from decimal import Decimal
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload
from bigbsubz_gateway.infrastructure.database.models import (
    CablePackageRow,
    CableProviderRow,
    Profile,
    TransactionRow,
)
from bigbsubz_gateway.domain.models import TransactionRecord


class ProfileRepository:
    """Repository for user profiles"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: str) -> Optional[Profile]:
        return self.db.get(Profile, user_id)

    def rename(self, user_id: str, name: str) -> Optional[Profile]:
        profile = self.get_by_id(user_id)
        if profile is None:
            return None
        profile.name = name
        self.db.flush()
        return profile

    def add_to_balance(self, user_id: str, amount: Decimal) -> int:
        """Single UPDATE relative to the stored balance; returns matched rows"""
        result = self.db.execute(
            update(Profile)
            .where(Profile.id == user_id)
            .values(balance=Profile.balance + amount)
        )
        return result.rowcount


class CatalogRepository:
    """Repository for providers and their packages"""

    def __init__(self, db: Session):
        self.db = db

    def get_package(self, package_id: str) -> Optional[CablePackageRow]:
        return (
            self.db.query(CablePackageRow)
            .options(joinedload(CablePackageRow.provider))
            .filter(CablePackageRow.id == package_id)
            .first()
        )

    def list_providers(self) -> List[CableProviderRow]:
        return self.db.query(CableProviderRow).order_by(CableProviderRow.name.asc()).all()

    def list_packages(self, provider_id: Optional[str] = None) -> List[CablePackageRow]:
        query = self.db.query(CablePackageRow).options(joinedload(CablePackageRow.provider))
        if provider_id:
            query = query.filter(CablePackageRow.provider_id == provider_id)
        return query.order_by(CablePackageRow.amount.asc()).all()


class TransactionRepository:
    """Repository for the purchase ledger"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, record: TransactionRecord) -> TransactionRow:
        row = TransactionRow(
            user_id=record.user_id,
            type=record.type,
            amount=record.amount,
            status=record.status.value,
            reference=record.reference,
            provider=record.provider,
            recipient=record.recipient,
            details=record.details,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def list_recent(self, user_id: Optional[str] = None, limit: int = 50) -> List[TransactionRow]:
        query = self.db.query(TransactionRow)
        if user_id:
            query = query.filter(TransactionRow.user_id == user_id)
        return query.order_by(TransactionRow.created_at.desc()).limit(limit).all()
