from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests
class UserCreate(UserBase):
    password: str = Field(min_length=8)
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: Literal["buyer", "seller"] = "buyer"

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_verified: bool = False

    class Config:
        from_attributes = True

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schemas for OTP email verification
class OtpVerify(BaseModel):
    otp: str = Field(min_length=6, max_length=6)
