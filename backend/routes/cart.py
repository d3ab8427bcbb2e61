# backend/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from database import get_db
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from utils.money import line_total, money_sum
from models.users import User, ROLE_BUYER
from models.cart import Cart, CartItem
from services import catalog
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut

router = APIRouter(prefix="/cart", tags=["Cart"])

buyer_only = role_required(ROLE_BUYER)


def _get_cart(db: Session, user_id: int) -> Cart:
    # One cart per buyer, created on first use
    cart = db.query(Cart).filter(Cart.user_id == user_id).first()
    if not cart:
        cart = Cart(user_id=user_id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def _cart_to_out(db: Session, cart: Cart) -> CartOut:
    # Prices are read live from the catalog, the cart stores none
    products = catalog.get_products(db, [it.product_id for it in cart.items])
    items_out = []
    totals = []

    for it in cart.items:
        product = products.get(it.product_id)
        if product is None:
            continue
        total = line_total(product.price, it.quantity)
        available = product.is_active and product.quantity >= it.quantity
        if available:
            totals.append(total)

        items_out.append(CartItemOut(
            id=it.id,
            product_id=product.id,
            store_id=product.store_id,
            title=product.title,
            quantity=it.quantity,
            unit_price=float(product.price),
            line_total=float(total),
            available=available,
        ))

    return CartOut(items=items_out, total=float(money_sum(totals)))


def _check_stock(product, quantity: int):
    if not product.is_active:
        raise HTTPException(status_code=400, detail=f'Product "{product.title}" is not available')
    if quantity > product.quantity:
        raise HTTPException(status_code=400, detail=f"Only {product.quantity} items available")


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only)
):
    cart = _get_cart(db, current_user.id)
    return _cart_to_out(db, cart)


@router.post("/add", response_model=CartOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only)
):
    cart = _get_cart(db, current_user.id)
    product = catalog.get_product(db, payload.product_id)

    item = db.query(CartItem).filter(
        CartItem.cart_id == cart.id, CartItem.product_id == payload.product_id
    ).first()

    new_quantity = payload.quantity + (item.quantity if item else 0)
    _check_stock(product, new_quantity)

    if item:
        item.quantity = new_quantity
    else:
        item = CartItem(cart_id=cart.id, product_id=product.id, quantity=payload.quantity)
        db.add(item)

    db.commit()
    db.refresh(cart)

    out = _cart_to_out(db, cart)
    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": product.id, "quantity": payload.quantity, "cart_items": len(out.items)},
    )
    return out


@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only)
):
    cart = _get_cart(db, current_user.id)

    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.cart_id == cart.id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")

    product = catalog.get_product(db, item.product_id)
    _check_stock(product, payload.quantity)

    item.quantity = payload.quantity
    db.commit()
    db.refresh(cart)

    out = _cart_to_out(db, cart)
    write_log(
        db,
        user_id=current_user.id,
        action="CART_UPDATE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"item_id": item_id, "quantity": payload.quantity},
    )
    return out


@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only)
):
    cart = _get_cart(db, current_user.id)

    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.cart_id == cart.id).first()
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")

    db.delete(item)
    db.commit()
    db.refresh(cart)

    out = _cart_to_out(db, cart)
    write_log(
        db,
        user_id=current_user.id,
        action="CART_DELETE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"item_id": item_id, "cart_items": len(out.items)},
    )
    return out
