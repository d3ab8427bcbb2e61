from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    id: int
    product_id: int
    title: str
    quantity: int
    price_at_purchase: float
    item_total: float


class StoreSummary(BaseModel):
    id: int
    name: str
    slug: str


class AddressInfo(BaseModel):
    id: int
    name: str
    phone: str
    line1: str
    line2: str
    city: str
    state: str
    country: str
    pincode: str


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    store: StoreSummary
    status: str
    items: List[OrderItemOut]
    shipping_address: Optional[AddressInfo] = None
    subtotal: float
    shipping_fee: float
    total_amount: float
    admin_commission: float
    seller_amount: float
    payment_received: bool
    payout_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int

# Result of any checkout: one order per store
class CheckoutResponse(BaseModel):
    orders: List[OrderResponse]
    total_orders: int
    total_amount: float


class OrderLine(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)


class CartOrderCreate(BaseModel):
    address_id: int


class SingleItemOrderCreate(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    address_id: int


class DirectOrderCreate(BaseModel):
    items: List[OrderLine]
    address_id: int


class OrderSummaryRequest(BaseModel):
    source: Literal["cart", "items"] = "cart"
    items: Optional[List[OrderLine]] = None


class OrderSummaryResponse(BaseModel):
    subtotal: float
    shipping_fee: float
    discount: float
    total: float
    stores_count: int
    items_count: int
    unavailable_product_ids: List[int] = []

# Schema for seller-side status updates
class OrderStatusPatch(BaseModel):
    status: Literal["paid", "shipped", "delivered", "cancelled"]
