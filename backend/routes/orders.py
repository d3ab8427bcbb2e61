# backend/routes/orders.py
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Query
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_BUYER
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from utils.notifications import get_notifier
from utils.rate_limit import checkout_rate_limit
from services import orders as order_service
from services import lifecycle
from schemas.order import (
    CheckoutResponse, OrderResponse, OrdersPage,
    CartOrderCreate, SingleItemOrderCreate, DirectOrderCreate,
    OrderSummaryRequest, OrderSummaryResponse,
)

router = APIRouter(prefix="/orders", tags=["Orders"])

buyer_only = role_required(ROLE_BUYER)


def _after_checkout(db: Session, request: Request, background_tasks: BackgroundTasks,
                    user: User, source: str, result: dict):
    write_log(
        db, user_id=user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={
            "source": source,
            "order_ids": [o["id"] for o in result["orders"]],
            "total_amount": str(result["total_amount"]),
        },
    )
    background_tasks.add_task(
        get_notifier().send, user.email, "orders.placed",
        {"order_ids": [o["id"] for o in result["orders"]], "total_amount": str(result["total_amount"])},
    )


# Create one order per store from the buyer's cart
@router.post("/cart", response_model=CheckoutResponse, status_code=201, dependencies=[Depends(checkout_rate_limit)])
def create_order_from_cart(
    payload: CartOrderCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    result = order_service.create_order_from_cart(db, current_user.id, payload.address_id)
    _after_checkout(db, request, background_tasks, current_user, "cart", result)
    return result


# "Buy now" for a single product
@router.post("/single", response_model=CheckoutResponse, status_code=201, dependencies=[Depends(checkout_rate_limit)])
def create_single_item_order(
    payload: SingleItemOrderCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    result = order_service.create_single_item_order(
        db, current_user.id, payload.product_id, payload.quantity, payload.address_id
    )
    _after_checkout(db, request, background_tasks, current_user, "single", result)
    return result


# Explicit multi-item order, split by store like the cart
@router.post("/direct", response_model=CheckoutResponse, status_code=201, dependencies=[Depends(checkout_rate_limit)])
def create_direct_order(
    payload: DirectOrderCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    items = [(line.product_id, line.quantity) for line in payload.items]
    result = order_service.create_direct_order(db, current_user.id, items, payload.address_id)
    _after_checkout(db, request, background_tasks, current_user, "direct", result)
    return result


# Price preview before checkout
@router.post("/summary", response_model=OrderSummaryResponse)
def get_order_summary(
    payload: OrderSummaryRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    items = [(line.product_id, line.quantity) for line in payload.items or []]
    return order_service.order_summary(db, current_user.id, payload.source, items)


# List the buyer's orders
@router.get("", response_model=OrdersPage)
def list_my_orders(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    return order_service.list_buyer_orders(db, current_user.id, status, page, page_size)


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    order = order_service.get_buyer_order(db, current_user.id, order_id)
    return order_service.project_order(db, order)


# Cancel a pending order and return its stock
@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    order = lifecycle.cancel_order(db, current_user.id, order_id)
    write_log(db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id})
    background_tasks.add_task(get_notifier().send, current_user.email, "orders.cancelled", {"order_id": order.id})
    return order_service.project_order(db, order)
