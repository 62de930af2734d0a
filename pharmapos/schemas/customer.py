# pharmapos/schemas/customer.py

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=3, max_length=32)
    email: EmailStr | None = None
    address: str | None = None


class CustomerResponse(BaseModel):
    id: str
    name: str
    phone: str
    email: str | None
    address: str | None
    created_at: datetime

    class Config:
        from_attributes = True
