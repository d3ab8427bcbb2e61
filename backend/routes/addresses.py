# backend/routes/addresses.py
from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_BUYER
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from services import addresses as address_service
from schemas.address import AddressCreate, AddressOut

router = APIRouter(prefix="/addresses", tags=["Addresses"])

buyer_only = role_required(ROLE_BUYER)


@router.get("", response_model=List[AddressOut])
def list_addresses(db: Session = Depends(get_db), current_user: User = Depends(buyer_only)):
    return address_service.list_addresses(db, current_user.id)


@router.post("", response_model=AddressOut, status_code=201)
def create_address(
    payload: AddressCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    address = address_service.create_address(db, current_user.id, payload.model_dump())
    write_log(db, user_id=current_user.id, action="ADDRESS_CREATE", resource="addresses",
              status="SUCCESS", ip=client_ip(request), meta={"address_id": address.id})
    return address


@router.delete("/{address_id}", status_code=204)
def delete_address(
    address_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(buyer_only),
):
    address_service.delete_address(db, current_user.id, address_id)
    write_log(db, user_id=current_user.id, action="ADDRESS_DELETE", resource="addresses",
              status="SUCCESS", ip=client_ip(request), meta={"address_id": address_id})
