from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, func
from database import Base

# Identity numbers are never stored in plaintext: only a keyed hash and the last 4 characters.

# KYC verification states
KYC_PENDING = "pending"
KYC_VERIFIED = "verified"
KYC_REJECTED = "rejected"


class SellerPanKyc(Base):
    __tablename__ = "seller_pan_kyc"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("seller_profiles.id", ondelete="CASCADE"), unique=True, nullable=False)
    pan_name = Column(String(120), nullable=False)
    pan_last4 = Column(String(4), nullable=False)
    pan_hash = Column(String, nullable=False)
    status = Column(String, default=KYC_PENDING, nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SellerAadhaarKyc(Base):
    __tablename__ = "seller_aadhaar_kyc"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("seller_profiles.id", ondelete="CASCADE"), unique=True, nullable=False)
    aadhaar_last4 = Column(String(4), nullable=False)
    aadhaar_hash = Column(String, nullable=False)
    status = Column(String, default=KYC_PENDING, nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SellerBankKyc(Base):
    __tablename__ = "seller_bank_kyc"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("seller_profiles.id", ondelete="CASCADE"), unique=True, nullable=False)
    account_holder_name = Column(String(120), nullable=False)
    account_last4 = Column(String(4), nullable=False)
    account_hash = Column(String, nullable=False)
    ifsc_code = Column(String(11), nullable=False)
    status = Column(String, default=KYC_PENDING, nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
