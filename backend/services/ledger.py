# backend/services/ledger.py
"""Commission settings, per-order commission split and the admin wallet.

Every wallet change is issued as a single ``UPDATE ... SET col = col + :x``
so concurrent requests never overwrite each other's balance. Callers own
the transaction: nothing here commits except the settings/wallet bootstrap
helpers that are safe to run on their own.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from config import settings
from models.admin import AdminWallet, CommissionSettings
from models.order import Order, ORDER_CANCELLED, PAYOUT_PENDING
from models.payout import Payout, IN_FLIGHT_STATUSES, PAYOUT_COMPLETED
from models.seller import Store
from services.errors import ValidationError
from utils.money import quantize, quantize_rate, split_commission, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Orders whose money has reached the admin wallet
PAID_STATUSES = ("paid", "shipped", "delivered")


# =========================
# COMMISSION SETTINGS
# =========================
def current_settings(db: Session) -> Optional[CommissionSettings]:
    return db.query(CommissionSettings).order_by(CommissionSettings.id.desc()).first()


def current_rate(db: Session) -> Decimal:
    row = current_settings(db)
    if row is None:
        return quantize_rate(settings.DEFAULT_COMMISSION_RATE)
    return quantize_rate(row.commission_rate)


def update_rate(db: Session, admin_id: int, rate, note: Optional[str] = None) -> CommissionSettings:
    raw = to_decimal(rate)
    if not raw.is_finite() or raw < 0 or raw > 1:
        raise ValidationError("Commission rate must be between 0 and 1")
    rate = quantize_rate(raw)
    # Admin input is stored as given, never rounded
    if rate != raw:
        raise ValidationError("Commission rate allows at most 4 decimal places")

    previous = current_rate(db)
    row = CommissionSettings(commission_rate=rate, updated_by=admin_id, update_note=note)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Commission rate changed from %s to %s by admin %s", previous, rate, admin_id)
    return row


def rate_history(db: Session, limit: int = 50):
    return db.query(CommissionSettings).order_by(CommissionSettings.id.desc()).limit(limit).all()


def apply_commission(order: Order, rate: Decimal) -> None:
    """Freeze the commission split on a new order."""
    commission, seller_amount = split_commission(order.total_amount, rate)
    order.total_amount = quantize(order.total_amount)
    order.commission_rate = rate
    order.admin_commission = commission
    order.seller_amount = seller_amount


# =========================
# ADMIN WALLET
# =========================
def get_wallet(db: Session) -> AdminWallet:
    wallet = db.query(AdminWallet).order_by(AdminWallet.id).first()
    if wallet is None:
        wallet = AdminWallet(
            total_balance=ZERO, available_balance=ZERO, pending_payouts=ZERO,
            total_commission_earned=ZERO, total_payouts_processed=ZERO,
        )
        db.add(wallet)
        db.flush()
    return wallet


def _adjust_wallet(db: Session, **deltas) -> None:
    wallet = get_wallet(db)
    values = {
        name: getattr(AdminWallet, name) + to_decimal(delta)
        for name, delta in deltas.items()
    }
    db.execute(
        update(AdminWallet)
        .where(AdminWallet.id == wallet.id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


def record_payment(db: Session, order: Order) -> None:
    """Buyer money for ``order`` lands in the pooled wallet."""
    _adjust_wallet(
        db,
        total_balance=order.total_amount,
        available_balance=order.total_amount,
        total_commission_earned=order.admin_commission,
    )


def hold_payout(db: Session, payout: Payout) -> None:
    _adjust_wallet(db, pending_payouts=payout.amount, available_balance=-to_decimal(payout.amount))


def release_payout_hold(db: Session, payout: Payout) -> None:
    _adjust_wallet(db, pending_payouts=-to_decimal(payout.amount), available_balance=payout.amount)


def settle_payout(db: Session, payout: Payout) -> None:
    amount = to_decimal(payout.amount)
    _adjust_wallet(
        db,
        pending_payouts=-amount,
        total_balance=-amount,
        total_payouts_processed=amount,
    )


# =========================
# SELLER EARNINGS
# =========================
def _earnings_row(db: Session, store_ids, store_filter=None):
    q = db.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_amount), 0),
        func.coalesce(func.sum(Order.admin_commission), 0),
        func.coalesce(func.sum(Order.seller_amount), 0),
    ).filter(Order.store_id.in_(store_ids), Order.status != ORDER_CANCELLED)
    if store_filter is not None:
        q = q.filter(Order.store_id == store_filter)
    count, revenue, commission, net = q.one()
    return int(count or 0), quantize(revenue), quantize(commission), quantize(net)


def _available_for_payout(db: Session, store_ids, store_filter=None) -> Decimal:
    q = db.query(func.coalesce(func.sum(Order.seller_amount), 0)).filter(
        Order.store_id.in_(store_ids),
        Order.status.in_(PAID_STATUSES),
        Order.payment_received.is_(True),
        Order.payout_id.is_(None),
        Order.payout_status == PAYOUT_PENDING,
    )
    if store_filter is not None:
        q = q.filter(Order.store_id == store_filter)
    return quantize(q.scalar())


def _payout_total(db: Session, seller_id: int, statuses) -> Decimal:
    q = db.query(func.coalesce(func.sum(Payout.amount), 0)).filter(
        Payout.seller_id == seller_id, Payout.status.in_(statuses)
    )
    return quantize(q.scalar())


def _store_in_flight(db: Session, store_id: int) -> Decimal:
    # Payouts may span stores, so attribute them through the orders they cover
    q = (
        db.query(func.coalesce(func.sum(Order.seller_amount), 0))
        .join(Payout, Payout.id == Order.payout_id)
        .filter(Order.store_id == store_id, Payout.status.in_(IN_FLIGHT_STATUSES))
    )
    return quantize(q.scalar())


def seller_earnings(db: Session, seller_id: int) -> dict:
    stores = db.query(Store).filter(Store.seller_id == seller_id).order_by(Store.id).all()
    store_ids = [s.id for s in stores]

    total_orders, revenue, commission, net = _earnings_row(db, store_ids)
    by_store = []
    for store in stores:
        s_orders, s_revenue, s_commission, s_net = _earnings_row(db, store_ids, store.id)
        by_store.append({
            "store_id": store.id,
            "store_name": store.name,
            "total_orders": s_orders,
            "total_revenue": s_revenue,
            "total_commission": s_commission,
            "net_earnings": s_net,
            "pending_payout": _store_in_flight(db, store.id),
            "available_for_payout": _available_for_payout(db, store_ids, store.id),
        })

    return {
        "total_orders": total_orders,
        "total_revenue": revenue,
        "total_commission": commission,
        "net_earnings": net,
        "pending_payout": _payout_total(db, seller_id, IN_FLIGHT_STATUSES),
        "completed_payouts": _payout_total(db, seller_id, (PAYOUT_COMPLETED,)),
        "available_for_payout": _available_for_payout(db, store_ids),
        "commission_rate": current_rate(db),
        "stores": by_store,
    }


def revenue_by_store(db: Session):
    rows = (
        db.query(
            Store.id, Store.name,
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0),
            func.coalesce(func.sum(Order.admin_commission), 0),
            func.coalesce(func.sum(Order.seller_amount), 0),
        )
        .join(Order, Order.store_id == Store.id)
        .filter(Order.status != ORDER_CANCELLED)
        .group_by(Store.id, Store.name)
        .order_by(func.sum(Order.total_amount).desc())
        .all()
    )
    return [
        {
            "store_id": sid, "store_name": name, "total_orders": int(count),
            "total_revenue": quantize(revenue), "admin_commission": quantize(commission),
            "seller_earnings": quantize(net),
        }
        for sid, name, count, revenue, commission, net in rows
    ]
