# hangwa/schemas/customer.py

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from hangwa.schemas.base import CamelModel

class CustomerBase(CamelModel):
    zip_code: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    notes: Optional[str] = None

class CustomerCreate(CustomerBase):
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)

class CustomerUpdate(CustomerBase):
    customer_name: Optional[str] = Field(None, min_length=1)
    customer_phone: Optional[str] = Field(None, min_length=1)

class Customer(CustomerBase):
    id: int
    customer_name: str
    customer_phone: str
    order_count: int
    total_spent: int
    last_order_date: Optional[datetime] = None
    user_id: Optional[int] = None
    is_deleted: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

class CustomerAddress(CamelModel):
    zip_code: Optional[str] = None
    address1: str
    address2: Optional[str] = None
    last_used: Optional[datetime] = None

class UploadResult(CamelModel):
    created: int
    updated: int
    skipped: int
    errors: List[str] = []

class RefreshStatsResult(CamelModel):
    updated: int
