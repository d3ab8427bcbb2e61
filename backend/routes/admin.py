# backend/routes/admin.py
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Query
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN
from models.seller import SellerProfile
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from utils.notifications import get_notifier
from services import kyc, ledger, payouts
from schemas.admin import CommissionSettingsOut, CommissionUpdate, WalletOut, RevenueResponse
from schemas.payout import PayoutOut, PayoutPage, PayoutProcess, PayoutSettle
from schemas.seller import KycReview, KycStatusResponse

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = role_required(ROLE_ADMIN)


def _settings_out(row, rate) -> dict:
    return {
        "id": row.id if row else None,
        "commission_rate": rate,
        "commission_percentage": float(rate) * 100,
        "updated_by": row.updated_by if row else None,
        "update_note": row.update_note if row else None,
        "created_at": row.created_at if row else None,
    }


def _notify_seller(db: Session, background_tasks: BackgroundTasks, seller_id: int, event: str, payload: dict):
    user = (
        db.query(User)
        .join(SellerProfile, SellerProfile.user_id == User.id)
        .filter(SellerProfile.id == seller_id)
        .first()
    )
    if user:
        background_tasks.add_task(get_notifier().send, user.email, event, payload)


# =========================
# COMMISSION
# =========================
@router.get("/commission", response_model=CommissionSettingsOut)
def get_commission(db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return _settings_out(ledger.current_settings(db), ledger.current_rate(db))


@router.put("/commission", response_model=CommissionSettingsOut)
def update_commission(
    payload: CommissionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    row = ledger.update_rate(db, current_user.id, payload.commission_rate, payload.update_note)
    write_log(db, user_id=current_user.id, action="COMMISSION_UPDATE", resource="commission",
              status="SUCCESS", ip=client_ip(request), meta={"commission_rate": str(row.commission_rate)})
    return _settings_out(row, row.commission_rate)


@router.get("/commission/history", response_model=List[CommissionSettingsOut])
def commission_history(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return [_settings_out(row, row.commission_rate) for row in ledger.rate_history(db, limit)]


# =========================
# WALLET / REVENUE
# =========================
@router.get("/wallet", response_model=WalletOut)
def get_wallet(db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    wallet = ledger.get_wallet(db)
    db.commit()
    return wallet


@router.get("/revenue", response_model=RevenueResponse)
def get_revenue(db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    wallet = ledger.get_wallet(db)
    db.commit()
    return {
        "wallet": WalletOut.model_validate(wallet),
        "commission_rate": ledger.current_rate(db),
        "stores": ledger.revenue_by_store(db),
    }


# =========================
# PAYOUTS
# =========================
@router.get("/payouts", response_model=PayoutPage)
def list_payouts(
    status: Optional[str] = Query(None),
    seller_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    rows, total = payouts.list_payouts(db, status, seller_id, page, page_size)
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


@router.get("/payouts/{payout_id}", response_model=PayoutOut)
def get_payout(payout_id: int, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return payouts.get_payout(db, payout_id)


# Approve or reject a requested payout
@router.post("/payouts/{payout_id}/process", response_model=PayoutOut)
def process_payout(
    payout_id: int,
    payload: PayoutProcess,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    payout = payouts.process_payout(
        db, current_user.id, payout_id, payload.status, payload.admin_notes, payload.transaction_id
    )
    write_log(db, user_id=current_user.id, action="PAYOUT_PROCESS", resource="payouts", status="SUCCESS",
              ip=client_ip(request), meta={"payout_id": payout.id, "status": payout.status})
    _notify_seller(db, background_tasks, payout.seller_id, f"payouts.{payout.status}",
                   {"payout_id": payout.id, "amount": str(payout.amount), "admin_notes": payout.admin_notes})
    return payout


# Move an approved payout to processing, completed or failed
@router.post("/payouts/{payout_id}/settle", response_model=PayoutOut)
def settle_payout(
    payout_id: int,
    payload: PayoutSettle,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    payout = payouts.settle_payout(
        db, current_user.id, payout_id, payload.status, payload.admin_notes, payload.transaction_id
    )
    write_log(db, user_id=current_user.id, action="PAYOUT_SETTLE", resource="payouts", status="SUCCESS",
              ip=client_ip(request), meta={"payout_id": payout.id, "status": payout.status,
                                           "transaction_id": payout.transaction_id})
    _notify_seller(db, background_tasks, payout.seller_id, f"payouts.{payout.status}",
                   {"payout_id": payout.id, "amount": str(payout.amount), "transaction_id": payout.transaction_id})
    return payout


# =========================
# KYC REVIEW
# =========================
@router.post("/kyc/{seller_id}/{doc_type}", response_model=KycStatusResponse)
def review_kyc(
    seller_id: int,
    doc_type: str,
    payload: KycReview,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    record = kyc.review_document(db, current_user.id, seller_id, doc_type, payload.approve, payload.reason)
    write_log(db, user_id=current_user.id, action="KYC_REVIEW", resource="kyc", status="SUCCESS",
              ip=client_ip(request), meta={"seller_id": seller_id, "type": doc_type, "status": record.status})
    return kyc.kyc_status(db, seller_id)
