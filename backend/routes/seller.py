# backend/routes/seller.py
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Query
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_BUYER, ROLE_SELLER
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from utils.notifications import get_notifier
from utils.rate_limit import payout_rate_limit
from services import catalog, kyc, ledger, lifecycle, payouts
from services import orders as order_service
from schemas.order import OrderResponse, OrdersPage, OrderStatusPatch
from schemas.payout import PayoutCreate, PayoutOut, PayoutPage
from schemas.seller import (
    SellerProfileCreate, SellerProfileOut,
    StoreCreate, StoreUpdate, StoreOut,
    ProductCreate, ProductUpdate, ProductOut,
    SellerEarningsResponse,
    KycPanSubmit, KycAadhaarSubmit, KycBankSubmit, KycStatusResponse, KycRecordOut,
)

router = APIRouter(prefix="/seller", tags=["Seller"])

seller_only = role_required(ROLE_SELLER)


def _profile(db: Session, user: User):
    return catalog.get_seller_profile(db, user.id)


# =========================
# PROFILE / STORES / PRODUCTS
# =========================
# Buyers become sellers here; existing sellers may update their GST number
@router.post("/profile", response_model=SellerProfileOut)
def create_profile(
    payload: SellerProfileCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_BUYER, ROLE_SELLER)),
):
    profile = catalog.create_seller_profile(db, current_user, payload.gst_number)
    write_log(db, user_id=current_user.id, action="SELLER_PROFILE", resource="seller",
              status="SUCCESS", ip=client_ip(request), meta={"seller_id": profile.id})
    return profile


@router.post("/stores", response_model=StoreOut, status_code=201)
def create_store(
    payload: StoreCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    profile = _profile(db, current_user)
    store = catalog.create_store(db, profile.id, payload.name, payload.slug, payload.description)
    write_log(db, user_id=current_user.id, action="STORE_CREATE", resource="stores",
              status="SUCCESS", ip=client_ip(request), meta={"store_id": store.id, "slug": store.slug})
    return store


@router.patch("/stores/{store_id}", response_model=StoreOut)
def update_store(
    store_id: int,
    payload: StoreUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    profile = _profile(db, current_user)
    changes = payload.model_dump(exclude_none=True)
    store = catalog.update_store(db, profile.id, store_id, changes)
    write_log(db, user_id=current_user.id, action="STORE_UPDATE", resource="stores",
              status="SUCCESS", ip=client_ip(request), meta={"store_id": store.id, "fields": sorted(changes)})
    return store


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    profile = _profile(db, current_user)
    product = catalog.create_product(db, profile.id, payload.model_dump())
    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"product_id": product.id, "store_id": product.store_id})
    return product


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    profile = _profile(db, current_user)
    changes = payload.model_dump(exclude_none=True)
    product = catalog.update_product(db, profile.id, product_id, changes)
    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
              status="SUCCESS", ip=client_ip(request), meta={"product_id": product.id, "fields": sorted(changes)})
    return product


# =========================
# ORDERS
# =========================
@router.get("/orders", response_model=OrdersPage)
def list_orders(
    store_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    profile = _profile(db, current_user)
    rows, total = lifecycle.list_seller_orders(db, profile.id, store_id, status, page, page_size)
    return {"items": order_service.project_orders(db, rows), "total": total, "page": page, "page_size": page_size}


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    profile = _profile(db, current_user)
    order = lifecycle.get_seller_order(db, profile.id, order_id)
    return order_service.project_order(db, order)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    profile = _profile(db, current_user)
    order = lifecycle.update_order_status(db, profile.id, order_id, payload.status)
    write_log(db, user_id=current_user.id, action="ORDER_STATUS", resource="orders",
              status="SUCCESS", ip=client_ip(request), meta={"order_id": order.id, "status": order.status})

    buyer = db.query(User).filter(User.id == order.user_id).first()
    if buyer:
        background_tasks.add_task(
            get_notifier().send, buyer.email, "orders.status_changed",
            {"order_id": order.id, "status": order.status},
        )
    return order_service.project_order(db, order)


# =========================
# EARNINGS / PAYOUTS
# =========================
@router.get("/earnings", response_model=SellerEarningsResponse)
def get_earnings(db: Session = Depends(get_db), current_user: User = Depends(seller_only)):
    profile = _profile(db, current_user)
    return ledger.seller_earnings(db, profile.id)


@router.post("/payouts", response_model=PayoutOut, status_code=201, dependencies=[Depends(payout_rate_limit)])
def request_payout(
    payload: PayoutCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    payout = payouts.create_payout_request(
        db, current_user.id, payload.store_id, payload.order_ids, payload.request_notes
    )
    write_log(db, user_id=current_user.id, action="PAYOUT_REQUEST", resource="payouts", status="SUCCESS",
              ip=client_ip(request), meta={"payout_id": payout.id, "amount": str(payout.amount)})
    background_tasks.add_task(
        get_notifier().send, current_user.email, "payouts.requested",
        {"payout_id": payout.id, "amount": str(payout.amount)},
    )
    return payout


@router.get("/payouts", response_model=PayoutPage)
def list_payouts(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    rows, total = payouts.list_seller_payouts(db, current_user.id, status, page, page_size)
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


# =========================
# KYC
# =========================
def _kyc_out(doc_type: str, record, last4: str) -> dict:
    return {"type": doc_type, "last4": last4, "status": record.status, "updated_at": record.updated_at}


@router.get("/kyc", response_model=KycStatusResponse)
def get_kyc_status(db: Session = Depends(get_db), current_user: User = Depends(seller_only)):
    profile = _profile(db, current_user)
    return kyc.kyc_status(db, profile.id)


@router.post("/kyc/pan", response_model=KycRecordOut)
def submit_pan(
    payload: KycPanSubmit,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    record = kyc.submit_pan(db, current_user.id, payload.pan_number, payload.pan_name)
    write_log(db, user_id=current_user.id, action="KYC_SUBMIT", resource="kyc",
              status="SUCCESS", ip=client_ip(request), meta={"type": kyc.DOC_PAN})
    return _kyc_out(kyc.DOC_PAN, record, record.pan_last4)


@router.post("/kyc/aadhaar", response_model=KycRecordOut)
def submit_aadhaar(
    payload: KycAadhaarSubmit,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    record = kyc.submit_aadhaar(db, current_user.id, payload.aadhaar_number)
    write_log(db, user_id=current_user.id, action="KYC_SUBMIT", resource="kyc",
              status="SUCCESS", ip=client_ip(request), meta={"type": kyc.DOC_AADHAAR})
    return _kyc_out(kyc.DOC_AADHAAR, record, record.aadhaar_last4)


@router.post("/kyc/bank", response_model=KycRecordOut)
def submit_bank(
    payload: KycBankSubmit,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(seller_only),
):
    record = kyc.submit_bank(
        db, current_user.id, payload.account_number, payload.account_holder_name, payload.ifsc_code
    )
    write_log(db, user_id=current_user.id, action="KYC_SUBMIT", resource="kyc",
              status="SUCCESS", ip=client_ip(request), meta={"type": kyc.DOC_BANK})
    return _kyc_out(kyc.DOC_BANK, record, record.account_last4)
