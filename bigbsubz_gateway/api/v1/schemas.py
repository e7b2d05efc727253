"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PayCableRequest(BaseModel):
    """Body of POST /v1/pay-cable; presence of required fields is checked by the handler"""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    package_id: Optional[str] = Field(None, alias="packageId")
    smart_card_number: Optional[str] = Field(None, alias="smartCardNumber")
    customer_name: Optional[str] = Field(None, alias="customerName")
    reference: Optional[str] = None


class PurchaseData(BaseModel):
    amount: float
    smartcard: str
    customer: str
    provider: str
    package: str
    duration: str
    reference: str
    date: datetime


class PayCableResponse(BaseModel):
    """Response for a successful POST /v1/pay-cable"""

    success: bool = True
    message: str
    data: PurchaseData


class ProviderSchema(BaseModel):
    id: str
    code: str
    name: str


class PackageSchema(BaseModel):
    id: str
    name: str
    amount: float
    duration: str
    provider: ProviderSchema


class PackageListResponse(BaseModel):
    """Response for GET /v1/cable/packages"""

    packages: List[PackageSchema]


class ProviderListResponse(BaseModel):
    """Response for GET /v1/cable/providers"""

    providers: List[ProviderSchema]


class ProfileResponse(BaseModel):
    """Response for GET/PATCH /v1/profile"""

    id: str
    email: str
    name: str
    role: str
    balance: float
    created_at: Optional[datetime] = None


class ProfileUpdateRequest(BaseModel):
    """Body of PATCH /v1/profile"""

    name: str = Field(..., min_length=1, max_length=120)


class TransactionItem(BaseModel):
    """Single ledger row"""

    id: Optional[str] = None
    user_id: str
    type: str
    amount: float
    status: str
    reference: str
    provider: Optional[str] = None
    recipient: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    """Response for GET /v1/transactions and GET /v1/admin/transactions"""

    transactions: List[TransactionItem]
