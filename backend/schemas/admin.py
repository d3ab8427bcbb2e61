from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class CommissionSettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    commission_rate: float
    commission_percentage: float
    updated_by: Optional[int] = None
    update_note: Optional[str] = None
    created_at: Optional[datetime] = None


class CommissionUpdate(BaseModel):
    commission_rate: float = Field(ge=0, le=1)
    update_note: Optional[str] = None


class WalletOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_balance: float
    available_balance: float
    pending_payouts: float
    total_commission_earned: float
    total_payouts_processed: float


class StoreRevenue(BaseModel):
    store_id: int
    store_name: str
    total_orders: int
    total_revenue: float
    admin_commission: float
    seller_earnings: float


class RevenueResponse(BaseModel):
    wallet: WalletOut
    commission_rate: float
    stores: List[StoreRevenue]
