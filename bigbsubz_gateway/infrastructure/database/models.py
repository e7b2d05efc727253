"""SQLAlchemy ORM models mirroring the backend platform's public tables"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, JSON, Numeric, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """Customer or admin profile holding the prepaid balance"""

    __tablename__ = "profiles"

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False, default="")
    email = Column(Text, nullable=True)
    role = Column(Text, nullable=False, default="customer")
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CableProviderRow(Base):
    """Cable TV operator"""

    __tablename__ = "cable_providers"

    id = Column(Text, primary_key=True, default=new_id)
    code = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    packages = relationship("CablePackageRow", back_populates="provider", cascade="all, delete-orphan")


class CablePackageRow(Base):
    """Bouquet sold by a provider"""

    __tablename__ = "cable_packages"

    id = Column(Text, primary_key=True, default=new_id)
    provider_id = Column(Text, ForeignKey("cable_providers.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    duration = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    provider = relationship("CableProviderRow", back_populates="packages")


class TransactionRow(Base):
    """Append-only purchase ledger"""

    __tablename__ = "transactions"

    id = Column(Text, primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Text, nullable=False)
    reference = Column(Text, nullable=False)
    provider = Column(Text, nullable=True)
    recipient = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
