from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class AddressCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=6)
    line1: str = Field(min_length=1)
    line2: Optional[str] = None
    city: str
    state: str
    country: str = "India"
    pincode: str = Field(min_length=3, max_length=12)


class AddressOut(AddressCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
