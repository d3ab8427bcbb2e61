from pydantic import BaseModel, ConfigDict
from typing import List, Literal, Optional
from datetime import datetime


class PayoutCreate(BaseModel):
    store_id: Optional[int] = None
    order_ids: Optional[List[int]] = None
    request_notes: Optional[str] = None


# Admin decision on a requested payout
class PayoutProcess(BaseModel):
    status: Literal["approved", "rejected"]
    admin_notes: Optional[str] = None
    transaction_id: Optional[str] = None


# Settlement after approval
class PayoutSettle(BaseModel):
    status: Literal["processing", "completed", "failed"]
    admin_notes: Optional[str] = None
    transaction_id: Optional[str] = None


class PayoutOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    seller_id: int
    store_id: Optional[int] = None
    gross_amount: float
    commission_amount: float
    amount: float
    commission_rate: float
    status: str
    order_ids: List[int]
    request_notes: Optional[str] = None
    admin_notes: Optional[str] = None
    transaction_id: Optional[str] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class PayoutPage(BaseModel):
    items: List[PayoutOut]
    total: int
    page: int
    page_size: int
