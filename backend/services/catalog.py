# backend/services/catalog.py
import re
from typing import Dict, Iterable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from models.product import Product
from models.seller import SellerProfile, Store
from models.users import ROLE_SELLER
from services.errors import NotFoundError, ValidationError
from utils.money import quantize


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).options(joinedload(Product.store)).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def get_products(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    ids = set(product_ids)
    if not ids:
        return {}
    rows = db.query(Product).options(joinedload(Product.store)).filter(Product.id.in_(ids)).all()
    return {p.id: p for p in rows}


def reserve_stock(db: Session, product_id: int, quantity: int) -> bool:
    """Decrement stock only if enough is left. Returns False when it is not."""
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.quantity >= quantity)
        .values(quantity=Product.quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def restore_stock(db: Session, product_id: int, quantity: int) -> None:
    db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(quantity=Product.quantity + quantity)
        .execution_options(synchronize_session=False)
    )


def get_seller_profile(db: Session, user_id: int) -> SellerProfile:
    profile = db.query(SellerProfile).filter(SellerProfile.user_id == user_id).first()
    if not profile:
        raise NotFoundError("Seller profile not found. Please complete seller registration.")
    return profile


def seller_store_ids(db: Session, seller_id: int):
    return [sid for (sid,) in db.query(Store.id).filter(Store.seller_id == seller_id).all()]


def get_seller_store(db: Session, seller_id: int, store_id: int) -> Store:
    store = db.query(Store).filter(Store.id == store_id, Store.seller_id == seller_id).first()
    if not store:
        raise NotFoundError("Store not found")
    return store


# =========================
# SELLER ONBOARDING / STOREFRONTS
# =========================
def create_seller_profile(db: Session, user, gst_number: Optional[str] = None) -> SellerProfile:
    """Create (or update) the seller profile and switch the account to the seller role."""
    profile = db.query(SellerProfile).filter(SellerProfile.user_id == user.id).first()
    if profile is None:
        profile = SellerProfile(user_id=user.id)
        db.add(profile)
    if gst_number is not None:
        profile.gst_number = gst_number.strip() or None
    user.role = ROLE_SELLER
    db.commit()
    db.refresh(profile)
    return profile


def _slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "store"


def _unique_slug(db: Session, base: str) -> str:
    slug = base
    n = 2
    while db.query(Store.id).filter(Store.slug == slug).first() is not None:
        slug = f"{base}-{n}"
        n += 1
    return slug


def create_store(db: Session, seller_id: int, name: str, slug: Optional[str] = None,
                 description: Optional[str] = None) -> Store:
    if slug:
        slug = _slugify(slug)
        if db.query(Store.id).filter(Store.slug == slug).first() is not None:
            raise ValidationError("Store slug is already taken")
    else:
        slug = _unique_slug(db, _slugify(name))

    store = Store(seller_id=seller_id, name=name.strip(), slug=slug, description=description)
    db.add(store)
    db.commit()
    db.refresh(store)
    return store


def update_store(db: Session, seller_id: int, store_id: int, data: dict) -> Store:
    store = get_seller_store(db, seller_id, store_id)
    for field, value in data.items():
        setattr(store, field, value)
    db.commit()
    db.refresh(store)
    return store


def create_product(db: Session, seller_id: int, data: dict) -> Product:
    get_seller_store(db, seller_id, data["store_id"])
    product = Product(**{**data, "price": quantize(data["price"])})
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, seller_id: int, product_id: int, data: dict) -> Product:
    product = get_product(db, product_id)
    if product.store is None or product.store.seller_id != seller_id:
        raise NotFoundError(f"Product {product_id} not found")
    if "price" in data and data["price"] is not None:
        data["price"] = quantize(data["price"])
    for field, value in data.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product
