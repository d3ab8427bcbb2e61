# backend/services/addresses.py
from sqlalchemy.orm import Session

from models.address import Address
from models.order import Order
from services.errors import NotFoundError, ValidationError


def get_buyer_address(db: Session, user_id: int, address_id: int) -> Address:
    address = db.query(Address).filter(Address.id == address_id, Address.user_id == user_id).first()
    if not address:
        raise NotFoundError("Address not found")
    return address


def list_addresses(db: Session, user_id: int):
    return db.query(Address).filter(Address.user_id == user_id).order_by(Address.id).all()


def create_address(db: Session, user_id: int, data: dict) -> Address:
    address = Address(user_id=user_id, **data)
    db.add(address)
    db.commit()
    db.refresh(address)
    return address


def delete_address(db: Session, user_id: int, address_id: int) -> None:
    address = get_buyer_address(db, user_id, address_id)
    # Placed orders keep pointing at their shipping address
    in_use = db.query(Order.id).filter(Order.address_id == address.id).first()
    if in_use:
        raise ValidationError("Address is used by existing orders")
    db.delete(address)
    db.commit()
