# hangwa/schemas/sms.py

import enum
from datetime import datetime
from typing import Optional
from pydantic import Field

from hangwa.schemas.base import CamelModel

class DraftKind(str, enum.Enum):
    status = "status"       # 주문접수 안내
    payment = "payment"     # 입금 확인 안내
    shipping = "shipping"   # 발송 안내
    custom = "custom"       # 개별 안내

class SmsSend(CamelModel):
    order_id: int
    phone_number: Optional[str] = Field(None, description="По умолчанию - телефон заказчика")
    message: str = Field(..., min_length=1, max_length=200)

class SmsDraft(CamelModel):
    order_id: int
    phone_number: str
    kind: DraftKind
    message: str

class SmsNotification(CamelModel):
    id: int
    order_id: int
    phone_number: str
    message: str
    status: str
    sent_at: datetime
