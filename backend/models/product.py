# backend/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint, DateTime, func
from sqlalchemy.orm import relationship
from database import Base
from models.seller import Store

# Product
# A single listing owned by exactly one store.
# Price is fixed-point currency, stock can never drop below zero.
# Availability follows the owning store's active flag.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), index=True, nullable=False)
    title = Column(String, nullable=False, index=True)
    description = Column(String)
    category = Column(String)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    store = relationship(Store, lazy="joined")

    @property
    def is_active(self) -> bool:
        return bool(self.store and self.store.is_active)
