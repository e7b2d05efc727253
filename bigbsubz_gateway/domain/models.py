"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

UNKNOWN_CUSTOMER = "Unknown Customer"
PROVIDER_FAILURE_MESSAGE = "Service provider API failure"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class TransactionStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class AuthUser:
    """Identity resolved from a bearer token by the backend platform"""

    id: str
    email: str = ""


@dataclass
class UserProfile:
    """Row of the profiles table"""

    id: str
    name: str
    role: UserRole
    balance: Decimal
    created_at: Optional[datetime] = None
    email: str = ""


@dataclass
class CableProvider:
    """Cable TV operator (e.g. DSTV, GOtv)"""

    id: str
    code: str
    name: str


@dataclass
class CablePackage:
    """Purchasable bouquet, read together with its provider"""

    id: str
    name: str
    amount: Decimal
    duration: str
    provider: CableProvider


@dataclass
class PurchaseRequest:
    """Validated body of a pay-cable call"""

    package_id: str
    smart_card_number: str
    reference: str
    customer_name: Optional[str] = None

    @property
    def customer_display_name(self) -> str:
        return self.customer_name or UNKNOWN_CUSTOMER


@dataclass
class TransactionRecord:
    """Append-only ledger row written once per purchase attempt"""

    user_id: str
    type: str
    amount: Decimal
    status: TransactionStatus
    reference: str
    provider: Optional[str] = None
    recipient: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class PurchaseReceipt:
    """Outcome of a successful subscription"""

    amount: Decimal
    smartcard: str
    customer: str
    provider: str
    package: str
    duration: str
    reference: str
    date: datetime

    @property
    def message(self) -> str:
        return f"{self.package} subscription successful"
