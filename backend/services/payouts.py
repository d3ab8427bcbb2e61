# backend/services/payouts.py
"""Seller payout requests and their admin-side settlement.

A payout covers a set of orders. Orders are claimed by stamping their
``payout_id`` with one conditional UPDATE (``WHERE payout_id IS NULL``);
if fewer rows change than were asked for, some other request got there
first and this one is rolled back. Rejected and failed payouts hand their
orders back so they can be claimed again.

State machine::

    requested -> approved -> processing -> completed
        |            |            |
        v            v            v
    rejected      failed       failed
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import update
from sqlalchemy.orm import Session

from models.order import (
    Order, ORDER_CANCELLED,
    PAYOUT_PENDING as ORDER_PAYOUT_PENDING,
    PAYOUT_REQUESTED as ORDER_PAYOUT_REQUESTED,
    PAYOUT_PROCESSING as ORDER_PAYOUT_PROCESSING,
    PAYOUT_COMPLETED as ORDER_PAYOUT_COMPLETED,
)
from models.payout import (
    Payout, PAYOUT_REQUESTED, PAYOUT_APPROVED, PAYOUT_PROCESSING,
    PAYOUT_COMPLETED, PAYOUT_REJECTED, PAYOUT_FAILED,
)
from services import catalog, ledger
from services.errors import NotFoundError, ValidationError
from utils.money import money_sum

logger = logging.getLogger(__name__)

PAYOUT_TRANSITIONS = {
    PAYOUT_REQUESTED: {PAYOUT_APPROVED, PAYOUT_REJECTED},
    PAYOUT_APPROVED: {PAYOUT_PROCESSING, PAYOUT_FAILED},
    PAYOUT_PROCESSING: {PAYOUT_COMPLETED, PAYOUT_FAILED},
    PAYOUT_COMPLETED: set(),
    PAYOUT_REJECTED: set(),
    PAYOUT_FAILED: set(),
}


def _is_eligible(order: Order) -> bool:
    return (
        order.payment_received
        and order.status in ledger.PAID_STATUSES
        and order.payout_id is None
        and order.payout_status == ORDER_PAYOUT_PENDING
    )


def _set_orders(db: Session, order_ids: Sequence[int], *conditions, **values) -> int:
    result = db.execute(
        update(Order)
        .where(Order.id.in_(order_ids), *conditions)
        .values(version=Order.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def _now():
    return datetime.now(timezone.utc)


# =========================
# SELLER: REQUEST
# =========================
def create_payout_request(db: Session, user_id: int, store_id: Optional[int] = None,
                          order_ids: Optional[Sequence[int]] = None, notes: Optional[str] = None) -> Payout:
    profile = catalog.get_seller_profile(db, user_id)
    if not profile.kyc_verified:
        raise ValidationError("KYC verification is required before requesting a payout")

    if store_id is not None:
        catalog.get_seller_store(db, profile.id, store_id)
        scope_ids = [store_id]
    else:
        scope_ids = catalog.seller_store_ids(db, profile.id)

    if order_ids:
        wanted = list(dict.fromkeys(order_ids))
        found = {
            o.id: o for o in db.query(Order).filter(Order.id.in_(wanted), Order.store_id.in_(scope_ids)).all()
        }
        for oid in wanted:
            if oid not in found:
                raise NotFoundError(f"Order {oid} not found")
        orders = [found[oid] for oid in wanted]
        for order in orders:
            if order.status == ORDER_CANCELLED:
                raise ValidationError(f"Order {order.id} is cancelled")
            if not _is_eligible(order):
                raise ValidationError(f"Order {order.id} is not eligible for payout")
    else:
        orders = (
            db.query(Order)
            .filter(
                Order.store_id.in_(scope_ids),
                Order.status.in_(ledger.PAID_STATUSES),
                Order.payment_received.is_(True),
                Order.payout_id.is_(None),
                Order.payout_status == ORDER_PAYOUT_PENDING,
            )
            .order_by(Order.id)
            .all()
        )

    if not orders:
        raise ValidationError("No orders eligible for payout")

    # Totals come from the split frozen on each order
    gross = money_sum(o.total_amount for o in orders)
    commission = money_sum(o.admin_commission for o in orders)
    net = money_sum(o.seller_amount for o in orders)
    ids = [o.id for o in orders]

    payout = Payout(
        seller_id=profile.id,
        store_id=store_id,
        gross_amount=gross,
        commission_amount=commission,
        amount=net,
        commission_rate=ledger.current_rate(db),
        status=PAYOUT_REQUESTED,
        order_ids=ids,
        request_notes=notes,
    )
    try:
        db.add(payout)
        db.flush()

        claimed = _set_orders(
            db, ids,
            Order.payout_id.is_(None),
            Order.payout_status == ORDER_PAYOUT_PENDING,
            Order.status != ORDER_CANCELLED,
            payout_id=payout.id,
            payout_status=ORDER_PAYOUT_REQUESTED,
        )
        if claimed != len(ids):
            raise ValidationError("Some orders are already covered by another payout request")

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(payout)
    logger.info("Payout %s requested by seller %s for orders %s (net %s)", payout.id, profile.id, ids, net)
    return payout


def list_seller_payouts(db: Session, user_id: int, status: Optional[str] = None, page: int = 1, page_size: int = 10):
    profile = catalog.get_seller_profile(db, user_id)
    q = db.query(Payout).filter(Payout.seller_id == profile.id)
    if status:
        q = q.filter(Payout.status == status)
    total = q.count()
    rows = q.order_by(Payout.created_at.desc(), Payout.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


# =========================
# ADMIN: PROCESS / SETTLE
# =========================
def get_payout(db: Session, payout_id: int) -> Payout:
    payout = db.query(Payout).filter(Payout.id == payout_id).first()
    if not payout:
        raise NotFoundError("Payout not found")
    return payout


def list_payouts(db: Session, status: Optional[str] = None, seller_id: Optional[int] = None,
                 page: int = 1, page_size: int = 10):
    q = db.query(Payout)
    if status:
        q = q.filter(Payout.status == status)
    if seller_id is not None:
        q = q.filter(Payout.seller_id == seller_id)
    total = q.count()
    rows = q.order_by(Payout.created_at.desc(), Payout.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


def _transition(db: Session, payout: Payout, new_status: str) -> str:
    old_status = payout.status
    if new_status not in PAYOUT_TRANSITIONS.get(old_status, set()):
        raise ValidationError(f"Cannot change payout status from {old_status} to {new_status}")
    # Conditional on the status we read, so two admins cannot both act on it
    changed = db.execute(
        update(Payout)
        .where(Payout.id == payout.id, Payout.status == old_status)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    ).rowcount
    if changed != 1:
        raise ValidationError("Payout was already processed")
    return old_status


def _release_orders(db: Session, payout: Payout) -> None:
    _set_orders(
        db, payout.order_ids or [],
        Order.payout_id == payout.id,
        payout_id=None,
        payout_status=ORDER_PAYOUT_PENDING,
    )


def _stamp(payout: Payout, admin_id: int, notes: Optional[str], transaction_id: Optional[str]) -> None:
    payout.processed_by = admin_id
    payout.processed_at = _now()
    if notes:
        payout.admin_notes = notes
    if transaction_id:
        payout.transaction_id = transaction_id


def process_payout(db: Session, admin_id: int, payout_id: int, status: str,
                   notes: Optional[str] = None, transaction_id: Optional[str] = None) -> Payout:
    """Admin decision on a requested payout: approved or rejected."""
    if status not in (PAYOUT_APPROVED, PAYOUT_REJECTED):
        raise ValidationError("status must be 'approved' or 'rejected'")
    if status == PAYOUT_REJECTED and not (notes and notes.strip()):
        raise ValidationError("admin_notes are required when rejecting a payout")

    payout = get_payout(db, payout_id)
    try:
        if payout.status != PAYOUT_REQUESTED:
            raise ValidationError(f"Only requested payouts can be processed (current: {payout.status})")
        _transition(db, payout, status)

        if status == PAYOUT_APPROVED:
            _set_orders(db, payout.order_ids or [], Order.payout_id == payout.id,
                        payout_status=ORDER_PAYOUT_PROCESSING)
            ledger.hold_payout(db, payout)
        else:
            _release_orders(db, payout)

        _stamp(payout, admin_id, notes, transaction_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(payout)
    logger.info("Payout %s %s by admin %s", payout.id, status, admin_id)
    return payout


def settle_payout(db: Session, admin_id: int, payout_id: int, status: str,
                  notes: Optional[str] = None, transaction_id: Optional[str] = None) -> Payout:
    """Move an approved payout through processing to completed, or mark it failed."""
    if status not in (PAYOUT_PROCESSING, PAYOUT_COMPLETED, PAYOUT_FAILED):
        raise ValidationError("status must be 'processing', 'completed' or 'failed'")

    payout = get_payout(db, payout_id)
    try:
        old_status = _transition(db, payout, status)

        if status == PAYOUT_COMPLETED:
            if not (transaction_id or payout.transaction_id):
                raise ValidationError("transaction_id is required to complete a payout")
            _set_orders(db, payout.order_ids or [], Order.payout_id == payout.id,
                        payout_status=ORDER_PAYOUT_COMPLETED)
            ledger.settle_payout(db, payout)
        elif status == PAYOUT_FAILED:
            _release_orders(db, payout)
            if old_status in (PAYOUT_APPROVED, PAYOUT_PROCESSING):
                ledger.release_payout_hold(db, payout)

        _stamp(payout, admin_id, notes, transaction_id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(payout)
    logger.info("Payout %s moved to %s by admin %s", payout.id, status, admin_id)
    return payout
