from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base

# Order lifecycle states
ORDER_PENDING = "pending"
ORDER_PAID = "paid"
ORDER_SHIPPED = "shipped"
ORDER_DELIVERED = "delivered"
ORDER_CANCELLED = "cancelled"

# Seller payout progress for a single order
PAYOUT_PENDING = "pending"
PAYOUT_REQUESTED = "requested"
PAYOUT_PROCESSING = "processing"
PAYOUT_COMPLETED = "completed"


# One store's fulfillment unit. A single checkout creates one Order per store.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    store_id = Column(Integer, ForeignKey("stores.id"), index=True, nullable=False)
    address_id = Column(Integer, ForeignKey("addresses.id"), nullable=True)
    status = Column(String, default=ORDER_PENDING, nullable=False, index=True)

    # Commission split, frozen at creation: admin_commission + seller_amount == total_amount
    total_amount = Column(Numeric(10, 2), nullable=False)
    admin_commission = Column(Numeric(10, 2), nullable=False, default=0)
    seller_amount = Column(Numeric(10, 2), nullable=False, default=0)
    commission_rate = Column(Numeric(5, 4), nullable=False, default=0)

    # Payment tracking, all payments go to the admin wallet
    payment_received = Column(Boolean, default=False, nullable=False)

    # Seller payout tracking
    payout_status = Column(String, default=PAYOUT_PENDING, nullable=False)
    payout_id = Column(Integer, ForeignKey("payouts.id"), nullable=True, index=True)

    # Optimistic lock, bumped on every UPDATE
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", cascade="all, delete-orphan", order_by="OrderItem.id")

    __mapper_args__ = {"version_id_col": version}


class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    # Snapshot taken at purchase time, catalog edits never touch these
    price_at_purchase = Column(Numeric(10, 2), nullable=False)
    title = Column(String, nullable=False)
