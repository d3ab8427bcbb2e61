from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class SellerProfileCreate(BaseModel):
    gst_number: Optional[str] = None


class SellerProfileOut(ORMBase):
    id: int
    user_id: int
    kyc_verified: bool
    gst_number: Optional[str] = None
    seller_status: str


class StoreCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None


class StoreUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class StoreOut(ORMBase):
    id: int
    seller_id: int
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool


class ProductCreate(BaseModel):
    store_id: int
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    price: float = Field(ge=0)
    quantity: int = Field(ge=0)


# Schema for partial product updates
class ProductUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)


class ProductOut(ORMBase):
    id: int
    store_id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: float
    quantity: int
    is_active: bool


class StoreEarnings(BaseModel):
    store_id: int
    store_name: str
    total_orders: int
    total_revenue: float
    total_commission: float
    net_earnings: float
    pending_payout: float
    available_for_payout: float


class SellerEarningsResponse(BaseModel):
    total_orders: int
    total_revenue: float
    total_commission: float
    net_earnings: float
    pending_payout: float
    completed_payouts: float
    available_for_payout: float
    commission_rate: float
    stores: List[StoreEarnings]


class KycPanSubmit(BaseModel):
    pan_number: str
    pan_name: str


class KycAadhaarSubmit(BaseModel):
    aadhaar_number: str


class KycBankSubmit(BaseModel):
    account_number: str
    account_holder_name: str
    ifsc_code: str


class KycDocumentStatus(BaseModel):
    type: str
    status: str
    reason: Optional[str] = None


class KycStatusResponse(BaseModel):
    kyc_verified: bool
    documents: List[KycDocumentStatus]


class KycReview(BaseModel):
    approve: bool
    reason: Optional[str] = None


class KycRecordOut(BaseModel):
    type: str
    last4: str
    status: str
    updated_at: Optional[datetime] = None
