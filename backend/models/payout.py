from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Text, JSON, func
from database import Base

# Payout states
PAYOUT_REQUESTED = "requested"
PAYOUT_APPROVED = "approved"
PAYOUT_PROCESSING = "processing"
PAYOUT_COMPLETED = "completed"
PAYOUT_REJECTED = "rejected"
PAYOUT_FAILED = "failed"

# Payouts still holding their orders
IN_FLIGHT_STATUSES = (PAYOUT_REQUESTED, PAYOUT_APPROVED, PAYOUT_PROCESSING)


# A seller's claim on accumulated net earnings, settled from the admin wallet
class Payout(Base):
    __tablename__ = "payouts"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("seller_profiles.id"), index=True, nullable=False)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=True)

    gross_amount = Column(Numeric(12, 2), nullable=False)
    commission_amount = Column(Numeric(12, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)  # Net paid to the seller
    commission_rate = Column(Numeric(5, 4), nullable=False)  # Rate in force when requested

    status = Column(String, default=PAYOUT_REQUESTED, nullable=False, index=True)
    order_ids = Column(JSON, nullable=False, default=list)

    request_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    transaction_id = Column(String, nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
