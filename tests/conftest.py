"""Shared fixtures: a throwaway SQLite database per test plus model builders."""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from database import Base, get_db, make_engine, register_models
from models.address import Address
from models.cart import Cart, CartItem
from models.product import Product
from models.seller import SellerProfile, Store
from models.users import User, ROLE_ADMIN, ROLE_BUYER, ROLE_SELLER
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token
from utils.ttl_store import InMemoryTTLStore, get_ttl_store

register_models()


@pytest.fixture()
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def ttl_store():
    return InMemoryTTLStore()


class Builder:
    """Small helpers for creating rows in the test database."""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, role=ROLE_BUYER, email=None, password="secret123"):
        n = self._next()
        return self._save(User(
            email=email or f"{role}{n}@example.com",
            password_hash=get_password_hash(password),
            role=role,
            first_name="Test",
            last_name=f"User{n}",
        ))

    def buyer(self, **kwargs):
        return self.user(role=ROLE_BUYER, **kwargs)

    def admin(self, **kwargs):
        return self.user(role=ROLE_ADMIN, **kwargs)

    def seller(self, kyc_verified=False, **kwargs):
        user = self.user(role=ROLE_SELLER, **kwargs)
        profile = self._save(SellerProfile(user_id=user.id, kyc_verified=kyc_verified))
        return user, profile

    def store(self, profile, name=None, is_active=True):
        n = self._next()
        return self._save(Store(
            seller_id=profile.id,
            name=name or f"Store {n}",
            slug=f"store-{n}",
            is_active=is_active,
        ))

    def product(self, store, price="10.00", quantity=10, title=None):
        n = self._next()
        return self._save(Product(
            store_id=store.id,
            title=title or f"Product {n}",
            price=Decimal(str(price)),
            quantity=quantity,
        ))

    def address(self, user):
        return self._save(Address(
            user_id=user.id,
            name="Asha Buyer",
            phone="9876543210",
            line1="12 MG Road",
            city="Bengaluru",
            state="Karnataka",
            country="India",
            pincode="560001",
        ))

    def cart(self, user, *lines):
        cart = self._save(Cart(user_id=user.id))
        for product, quantity in lines:
            self.db.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity))
        self.db.commit()
        self.db.refresh(cart)
        return cart


@pytest.fixture()
def build(db):
    return Builder(db)


def auth_headers(user):
    token = create_access_token(data={"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client(session_factory, ttl_store):
    from main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_ttl_store] = lambda: ttl_store
    # Lifespan is not entered, so the configured database is never touched
    yield TestClient(app)
    app.dependency_overrides.clear()
