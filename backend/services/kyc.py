# backend/services/kyc.py
import logging
import re

from sqlalchemy.orm import Session

from models.kyc import (
    SellerAadhaarKyc, SellerBankKyc, SellerPanKyc,
    KYC_PENDING, KYC_VERIFIED, KYC_REJECTED,
)
from models.seller import SellerProfile
from services import catalog
from services.errors import NotFoundError, ValidationError
from utils.hashing import hash_identifier, last4

logger = logging.getLogger(__name__)

PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
AADHAAR_RE = re.compile(r"^[0-9]{12}$")
ACCOUNT_RE = re.compile(r"^[0-9]{9,18}$")
IFSC_RE = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")

DOC_PAN = "pan"
DOC_AADHAAR = "aadhaar"
DOC_BANK = "bank"

DOCUMENT_MODELS = {
    DOC_PAN: SellerPanKyc,
    DOC_AADHAAR: SellerAadhaarKyc,
    DOC_BANK: SellerBankKyc,
}

# Documents that must be verified before a seller can be paid
REQUIRED_FOR_PAYOUT = (DOC_PAN, DOC_BANK)


def _normalize(value: str) -> str:
    return "".join((value or "").split()).upper()


def _existing(db: Session, model, seller_id: int):
    record = db.query(model).filter(model.seller_id == seller_id).first()
    if record is not None and record.status == KYC_VERIFIED:
        raise ValidationError("Verified KYC details cannot be replaced")
    return record


def _save(db: Session, record, **fields):
    for name, value in fields.items():
        setattr(record, name, value)
    record.status = KYC_PENDING
    record.reason = None
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def submit_pan(db: Session, user_id: int, pan_number: str, pan_name: str) -> SellerPanKyc:
    profile = catalog.get_seller_profile(db, user_id)
    pan = _normalize(pan_number)
    if not PAN_RE.match(pan):
        raise ValidationError("Invalid PAN number")

    record = _existing(db, SellerPanKyc, profile.id) or SellerPanKyc(seller_id=profile.id)
    return _save(db, record, pan_name=pan_name.strip(), pan_last4=last4(pan), pan_hash=hash_identifier(pan))


def submit_aadhaar(db: Session, user_id: int, aadhaar_number: str) -> SellerAadhaarKyc:
    profile = catalog.get_seller_profile(db, user_id)
    aadhaar = _normalize(aadhaar_number)
    if not AADHAAR_RE.match(aadhaar):
        raise ValidationError("Invalid Aadhaar number")

    record = _existing(db, SellerAadhaarKyc, profile.id) or SellerAadhaarKyc(seller_id=profile.id)
    return _save(db, record, aadhaar_last4=last4(aadhaar), aadhaar_hash=hash_identifier(aadhaar))


def submit_bank(db: Session, user_id: int, account_number: str, account_holder_name: str, ifsc_code: str) -> SellerBankKyc:
    profile = catalog.get_seller_profile(db, user_id)
    account = _normalize(account_number)
    ifsc = _normalize(ifsc_code)
    if not ACCOUNT_RE.match(account):
        raise ValidationError("Invalid bank account number")
    if not IFSC_RE.match(ifsc):
        raise ValidationError("Invalid IFSC code")

    record = _existing(db, SellerBankKyc, profile.id) or SellerBankKyc(seller_id=profile.id)
    return _save(
        db, record,
        account_holder_name=account_holder_name.strip(),
        account_last4=last4(account),
        account_hash=hash_identifier(account),
        ifsc_code=ifsc,
    )


def kyc_status(db: Session, seller_id: int) -> dict:
    documents = []
    for doc_type, model in DOCUMENT_MODELS.items():
        record = db.query(model).filter(model.seller_id == seller_id).first()
        documents.append({
            "type": doc_type,
            "status": record.status if record else "not_uploaded",
            "reason": record.reason if record else None,
        })
    profile = db.query(SellerProfile).filter(SellerProfile.id == seller_id).first()
    return {"kyc_verified": bool(profile and profile.kyc_verified), "documents": documents}


def _refresh_profile_flag(db: Session, seller_id: int) -> bool:
    verified = True
    for doc_type in REQUIRED_FOR_PAYOUT:
        model = DOCUMENT_MODELS[doc_type]
        record = db.query(model).filter(model.seller_id == seller_id).first()
        if record is None or record.status != KYC_VERIFIED:
            verified = False
    profile = db.query(SellerProfile).filter(SellerProfile.id == seller_id).first()
    profile.kyc_verified = verified
    return verified


def review_document(db: Session, admin_id: int, seller_id: int, doc_type: str, approve: bool, reason: str = None):
    """Admin verification of one KYC record; keeps SellerProfile.kyc_verified in sync."""
    model = DOCUMENT_MODELS.get(doc_type)
    if model is None:
        raise ValidationError("Invalid document type")
    record = db.query(model).filter(model.seller_id == seller_id).first()
    if record is None:
        raise NotFoundError("Document not found")
    if not approve and not reason:
        raise ValidationError("A reason is required when rejecting a document")

    record.status = KYC_VERIFIED if approve else KYC_REJECTED
    record.reason = None if approve else reason
    db.flush()
    verified = _refresh_profile_flag(db, seller_id)
    db.commit()
    logger.info("KYC %s for seller %s %s by admin %s (kyc_verified=%s)",
                doc_type, seller_id, record.status, admin_id, verified)
    return record
