# backend/services/orders.py
"""Checkout: turn a buyer's selection into one pending order per store.

The three entry points (cart, single item, explicit item list) share one
pipeline: resolve the address, resolve products, validate every line
before touching anything, group by store, then create all orders in a
single transaction. Stock is taken with a conditional UPDATE, so two
buyers racing for the last unit cannot both win; the loser's whole
checkout is rolled back.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from models.address import Address
from models.cart import Cart
from models.order import Order, OrderItem, ORDER_PENDING, PAYOUT_PENDING
from models.product import Product
from models.seller import Store
from services import catalog, ledger
from services.addresses import get_buyer_address
from services.errors import NotFoundError, ValidationError
from utils.money import line_total, money_sum

logger = logging.getLogger(__name__)

SOURCE_CART = "cart"
SOURCE_ITEMS = "items"


@dataclass
class LineItem:
    product: Product
    quantity: int

    @property
    def total(self) -> Decimal:
        return line_total(self.product.price, self.quantity)


@dataclass
class StoreGroup:
    store_id: int
    items: List[LineItem] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return money_sum(line.total for line in self.items)


# =========================
# VALIDATION / GROUPING
# =========================
def _merge_requests(requests: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    # Same product listed twice is one line with the combined quantity
    merged: Dict[int, int] = {}
    for product_id, quantity in requests:
        if quantity is None or quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        merged[product_id] = merged.get(product_id, 0) + quantity
    return list(merged.items())


def _not_enough_stock(product: Product, available: int, single: bool) -> ValidationError:
    if single:
        return ValidationError(f"Only {available} items available")
    return ValidationError(f'Only {available} of "{product.title}" available')


def resolve_lines(db: Session, requests: Sequence[Tuple[int, int]], single: bool = False) -> List[LineItem]:
    """Validate every requested (product_id, quantity) pair. Any failure rejects the whole batch."""
    merged = _merge_requests(requests)
    products = catalog.get_products(db, [pid for pid, _ in merged])

    lines = []
    for product_id, quantity in merged:
        product = products.get(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        if not product.is_active:
            raise ValidationError(f'Product "{product.title}" is not available')
        if product.quantity < quantity:
            raise _not_enough_stock(product, product.quantity, single)
        lines.append(LineItem(product=product, quantity=quantity))
    return lines


def group_by_store(lines: Iterable[LineItem]) -> List[StoreGroup]:
    groups: Dict[int, StoreGroup] = {}
    for line in lines:
        group = groups.get(line.product.store_id)
        if group is None:
            group = StoreGroup(store_id=line.product.store_id)
            groups[line.product.store_id] = group
        group.items.append(line)
    return list(groups.values())


# =========================
# ORDER CREATION
# =========================
def _place_orders(db: Session, user_id: int, address_id: int, groups: List[StoreGroup],
                  single: bool = False, cart: Optional[Cart] = None) -> List[Order]:
    rate = ledger.current_rate(db)
    created: List[Order] = []
    try:
        for group in groups:
            order = Order(
                user_id=user_id,
                store_id=group.store_id,
                address_id=address_id,
                status=ORDER_PENDING,
                total_amount=group.subtotal,
                payment_received=False,
                payout_status=PAYOUT_PENDING,
            )
            ledger.apply_commission(order, rate)

            for line in group.items:
                if not catalog.reserve_stock(db, line.product.id, line.quantity):
                    available = db.query(Product.quantity).filter(Product.id == line.product.id).scalar() or 0
                    raise _not_enough_stock(line.product, available, single)
                order.items.append(OrderItem(
                    product_id=line.product.id,
                    quantity=line.quantity,
                    price_at_purchase=line.product.price,
                    title=line.product.title,
                ))

            db.add(order)
            created.append(order)

        if cart is not None:
            cart.items.clear()

        db.flush()
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Checkout by user %s created %d order(s): %s",
        user_id, len(created), [o.id for o in created],
    )
    return created


def _checkout_result(db: Session, orders: List[Order]) -> dict:
    return {
        "orders": project_orders(db, orders),
        "total_orders": len(orders),
        "total_amount": money_sum(o.total_amount for o in orders),
    }


def create_order_from_cart(db: Session, user_id: int, address_id: int) -> dict:
    get_buyer_address(db, user_id, address_id)

    cart = db.query(Cart).filter(Cart.user_id == user_id).first()
    if not cart or not cart.items:
        raise ValidationError("Your cart is empty")

    lines = resolve_lines(db, [(ci.product_id, ci.quantity) for ci in cart.items])
    groups = group_by_store(lines)
    orders = _place_orders(db, user_id, address_id, groups, cart=cart)
    return _checkout_result(db, orders)


def create_single_item_order(db: Session, user_id: int, product_id: int, quantity: int, address_id: int) -> dict:
    get_buyer_address(db, user_id, address_id)

    lines = resolve_lines(db, [(product_id, quantity)], single=True)
    orders = _place_orders(db, user_id, address_id, group_by_store(lines), single=True)
    return _checkout_result(db, orders)


def create_direct_order(db: Session, user_id: int, items: Sequence[Tuple[int, int]], address_id: int) -> dict:
    get_buyer_address(db, user_id, address_id)

    if not items:
        raise ValidationError("No items provided")

    lines = resolve_lines(db, items)
    orders = _place_orders(db, user_id, address_id, group_by_store(lines))
    return _checkout_result(db, orders)


# =========================
# PRE-CHECKOUT SUMMARY
# =========================
def order_summary(db: Session, user_id: int, source: str, items: Optional[Sequence[Tuple[int, int]]] = None) -> dict:
    """Price preview. Lines that checkout would reject are reported, not priced."""
    if source == SOURCE_CART:
        cart = db.query(Cart).filter(Cart.user_id == user_id).first()
        requested = [(ci.product_id, ci.quantity) for ci in cart.items] if cart else []
    elif source == SOURCE_ITEMS:
        requested = list(items or [])
    else:
        raise ValidationError("source must be 'cart' or 'items'")

    products = catalog.get_products(db, [pid for pid, _ in requested])
    lines, unavailable = [], []
    for product_id, quantity in _merge_requests(requested):
        product = products.get(product_id)
        if product is None or not product.is_active or product.quantity < quantity:
            unavailable.append(product_id)
            continue
        lines.append(LineItem(product=product, quantity=quantity))

    subtotal = money_sum(line.total for line in lines)
    shipping_fee = Decimal("0.00")
    discount = Decimal("0.00")
    return {
        "subtotal": subtotal,
        "shipping_fee": shipping_fee,
        "discount": discount,
        "total": subtotal + shipping_fee - discount,
        "stores_count": len({line.product.store_id for line in lines}),
        "items_count": sum(line.quantity for line in lines),
        "unavailable_product_ids": unavailable,
    }


# =========================
# READS / PROJECTION
# =========================
def project_orders(db: Session, orders: List[Order]) -> List[dict]:
    """Flat views of orders, with store and address fetched by id."""
    store_ids = {o.store_id for o in orders}
    address_ids = {o.address_id for o in orders if o.address_id}
    stores = {s.id: s for s in db.query(Store).filter(Store.id.in_(store_ids)).all()} if store_ids else {}
    addresses = {a.id: a for a in db.query(Address).filter(Address.id.in_(address_ids)).all()} if address_ids else {}
    return [_order_view(o, stores.get(o.store_id), addresses.get(o.address_id)) for o in orders]


def project_order(db: Session, order: Order) -> dict:
    return project_orders(db, [order])[0]


def _order_view(order: Order, store: Optional[Store], address: Optional[Address]) -> dict:
    items = [
        {
            "id": it.id,
            "product_id": it.product_id,
            "title": it.title,
            "quantity": it.quantity,
            "price_at_purchase": it.price_at_purchase,
            "item_total": line_total(it.price_at_purchase, it.quantity),
        }
        for it in order.items
    ]
    return {
        "id": order.id,
        "user_id": order.user_id,
        "store": {
            "id": order.store_id,
            "name": store.name if store else "Unknown Store",
            "slug": store.slug if store else "",
        },
        "status": order.status,
        "items": items,
        "shipping_address": {
            "id": address.id,
            "name": address.name,
            "phone": address.phone,
            "line1": address.line1,
            "line2": address.line2 or "",
            "city": address.city,
            "state": address.state,
            "country": address.country,
            "pincode": address.pincode,
        } if address else None,
        "subtotal": money_sum(i["item_total"] for i in items),
        "shipping_fee": Decimal("0.00"),
        "total_amount": order.total_amount,
        "admin_commission": order.admin_commission,
        "seller_amount": order.seller_amount,
        "payment_received": order.payment_received,
        "payout_status": order.payout_status,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def list_buyer_orders(db: Session, user_id: int, status: Optional[str] = None, page: int = 1, page_size: int = 10) -> dict:
    q = db.query(Order).filter(Order.user_id == user_id)
    if status:
        q = q.filter(Order.status == status)
    total = q.count()
    rows = q.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": project_orders(db, rows), "total": total, "page": page, "page_size": page_size}


def get_buyer_order(db: Session, user_id: int, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order
