from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, Text, func
from database import Base


# Commission rate history. The most recent row is the rate in force.
class CommissionSettings(Base):
    __tablename__ = "commission_settings"

    id = Column(Integer, primary_key=True, index=True)
    commission_rate = Column(Numeric(5, 4), nullable=False)  # 0.05 = 5%
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    update_note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# Single pooled wallet: buyer payments flow in, seller payouts flow out
class AdminWallet(Base):
    __tablename__ = "admin_wallet"

    id = Column(Integer, primary_key=True, index=True)
    total_balance = Column(Numeric(15, 2), nullable=False, default=0)
    available_balance = Column(Numeric(15, 2), nullable=False, default=0)
    pending_payouts = Column(Numeric(15, 2), nullable=False, default=0)
    total_commission_earned = Column(Numeric(15, 2), nullable=False, default=0)
    total_payouts_processed = Column(Numeric(15, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
