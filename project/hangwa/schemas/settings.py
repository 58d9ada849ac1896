# hangwa/schemas/settings.py

from datetime import datetime
from typing import Optional
from pydantic import Field

from hangwa.schemas.base import CamelModel

class SettingUpdate(CamelModel):
    key: str = Field(..., min_length=1)
    value: str
    description: Optional[str] = None

class Setting(CamelModel):
    key: str
    value: str
    description: Optional[str] = None
    updated_at: datetime

class AdminSettingsUpdate(CamelModel):
    admin_name: str = Field(..., min_length=1)
    admin_phone: str = Field(..., min_length=1)
    business_name: str = Field(..., min_length=1)
    business_address: Optional[str] = None
    business_phone: Optional[str] = None
    bank_account: Optional[str] = None
    refund_shipping_fee: int = Field(3000, ge=0)

class AdminSettings(AdminSettingsUpdate):
    id: int
    updated_at: datetime
