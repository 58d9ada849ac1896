# hangwa/schemas/order.py

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from hangwa.models.order import OrderStatus, PaymentStatus
from hangwa.schemas.base import CamelModel

# ────────────── Поля, которые заполняет покупатель ──────────────
class OrderContact(CamelModel):
    zip_code: Optional[str] = None
    address2: Optional[str] = None
    special_requests: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_zip_code: Optional[str] = None
    recipient_address1: Optional[str] = None
    recipient_address2: Optional[str] = None
    depositor_name: Optional[str] = None
    is_different_depositor: bool = False

# ────────────── Схема для CREATE ──────────────
class OrderCreate(OrderContact):
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    address1: str = Field(..., min_length=1)
    small_box_quantity: int = Field(0, ge=0)
    large_box_quantity: int = Field(0, ge=0)
    wrapping_quantity: int = Field(0, ge=0)
    total_amount: Optional[int] = Field(None, ge=0, description="Сумма, посчитанная клиентом; сверяется на сервере")
    order_password: Optional[str] = Field(None, min_length=1, description="Пароль для изменения заказа без входа")
    scheduled_date: Optional[datetime] = None

# ────────────── Схема для UPDATE (PATCH) ──────────────
class OrderUpdate(CamelModel):
    customer_name: Optional[str] = Field(None, min_length=1)
    customer_phone: Optional[str] = Field(None, min_length=1)
    zip_code: Optional[str] = None
    address1: Optional[str] = Field(None, min_length=1)
    address2: Optional[str] = None
    special_requests: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    recipient_zip_code: Optional[str] = None
    recipient_address1: Optional[str] = None
    recipient_address2: Optional[str] = None
    depositor_name: Optional[str] = None
    is_different_depositor: Optional[bool] = None
    small_box_quantity: Optional[int] = Field(None, ge=0)
    large_box_quantity: Optional[int] = Field(None, ge=0)
    wrapping_quantity: Optional[int] = Field(None, ge=0)
    total_amount: Optional[int] = Field(None, ge=0)
    order_password: Optional[str] = Field(None, description="Пароль заказа (для неавторизованных)")

class StatusUpdate(CamelModel):
    status: OrderStatus

class PaymentStatusUpdate(CamelModel):
    payment_status: PaymentStatus
    actual_paid_amount: Optional[int] = Field(None, ge=0)
    discount_reason: Optional[str] = None

class DateUpdate(CamelModel):
    # ключ обязателен; null - очистить дату
    date: Optional[datetime]

class SellerShippedRequest(CamelModel):
    order_ids: List[int] = Field(..., min_length=1)

# ────────────── Схемы для RESPONSE ──────────────
class OrderPublic(OrderContact):
    """Заказ глазами покупателя: без себестоимости и пароля."""
    id: int
    order_number: str
    customer_name: str
    customer_phone: str
    address1: str
    small_box_quantity: int
    large_box_quantity: int
    wrapping_quantity: int
    shipping_fee: int
    total_amount: int
    actual_paid_amount: Optional[int] = None
    discount_amount: Optional[int] = 0
    discount_reason: Optional[str] = None
    status: OrderStatus
    payment_status: PaymentStatus
    scheduled_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    seller_shipped: bool = False
    seller_shipped_date: Optional[datetime] = None
    created_at: datetime

class OrderStaff(OrderPublic):
    """Заказ для менеджера и администратора."""
    small_box_price: int
    large_box_price: int
    wrapping_price: int
    small_box_cost: int
    large_box_cost: int
    wrapping_cost: int
    total_cost: int
    net_profit: int
    payment_confirmed_at: Optional[datetime] = None
    user_id: Optional[int] = None
    is_deleted: bool
    deleted_at: Optional[datetime] = None
