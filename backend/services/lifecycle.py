# backend/services/lifecycle.py
import logging

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from models.order import (
    Order, ORDER_PENDING, ORDER_PAID, ORDER_SHIPPED, ORDER_DELIVERED, ORDER_CANCELLED,
)
from services import catalog, ledger
from services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Allowed forward moves, anything else is rejected
TRANSITIONS = {
    ORDER_PENDING: {ORDER_PAID, ORDER_CANCELLED},
    ORDER_PAID: {ORDER_SHIPPED},
    ORDER_SHIPPED: {ORDER_DELIVERED},
    ORDER_DELIVERED: set(),
    ORDER_CANCELLED: set(),
}


def is_mutable(order: Order) -> bool:
    return order.status == ORDER_PENDING


def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, set())


def _commit(db: Session, order: Order, after_flush=None) -> None:
    # The version column turns a lost race into StaleDataError at flush time
    try:
        db.flush()
        if after_flush is not None:
            after_flush()
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning("Concurrent update detected on order %s", order.id)
        raise ConflictError("Order was modified by another request, please retry")
    except Exception:
        db.rollback()
        raise


def _cancel(db: Session, order: Order) -> Order:
    if not is_mutable(order):
        raise ValidationError("Only pending orders can be cancelled")

    for item in order.items:
        catalog.restore_stock(db, item.product_id, item.quantity)
    order.status = ORDER_CANCELLED
    _commit(db, order)
    logger.info("Order %s cancelled, stock restored for %d item(s)", order.id, len(order.items))
    return order


def cancel_order(db: Session, user_id: int, order_id: int) -> Order:
    """Buyer cancellation of a pending order."""
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return _cancel(db, order)


def get_seller_order(db: Session, seller_id: int, order_id: int) -> Order:
    store_ids = catalog.seller_store_ids(db, seller_id)
    order = db.query(Order).filter(Order.id == order_id, Order.store_id.in_(store_ids)).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_seller_orders(db: Session, seller_id: int, store_id: int = None, status: str = None,
                       page: int = 1, page_size: int = 10):
    store_ids = catalog.seller_store_ids(db, seller_id)
    q = db.query(Order).filter(Order.store_id.in_(store_ids))
    if store_id is not None:
        q = q.filter(Order.store_id == store_id)
    if status:
        q = q.filter(Order.status == status)
    total = q.count()
    rows = q.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


def update_order_status(db: Session, seller_id: int, order_id: int, new_status: str) -> Order:
    """Seller-driven transition. Marking paid stands in for payment capture."""
    order = get_seller_order(db, seller_id, order_id)
    old_status = order.status

    if new_status == ORDER_CANCELLED:
        return _cancel(db, order)

    if not can_transition(old_status, new_status):
        raise ValidationError(f"Cannot change status from {old_status} to {new_status}")

    order.status = new_status
    if new_status == ORDER_PAID:
        order.payment_received = True
        _commit(db, order, after_flush=lambda: ledger.record_payment(db, order))
    else:
        _commit(db, order)
    logger.info("Order %s moved %s -> %s by seller %s", order.id, old_status, new_status, seller_id)
    return order
