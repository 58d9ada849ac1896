# hangwa/models/order.py

import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from hangwa.utils.database import Base


class OrderStatus(str, enum.Enum):
    pending = "pending"                 # 주문접수
    preparing = "preparing"             # 상품준비
    scheduled = "scheduled"             # 발송주문 (예약발송)
    shipping = "shipping"               # 배송중
    seller_shipped = "seller_shipped"   # 발송대기 (매니저 발송)
    delivered = "delivered"             # 발송완료


class PaymentStatus(str, enum.Enum):
    pending = "pending"         # 입금대기
    confirmed = "confirmed"     # 입금완료
    partial = "partial"         # 부분결제
    refunded = "refunded"       # 환불


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)  # автоинкремент
    order_number = Column(String, unique=True, nullable=False, index=True)  # ED + YYYYMMDD + NN

    # Заказчик
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False, index=True)
    zip_code = Column(String, nullable=True)
    address1 = Column(String, nullable=False)
    address2 = Column(String, nullable=True)
    special_requests = Column(Text, nullable=True)

    # Получатель (если отличается)
    recipient_name = Column(String, nullable=True)
    recipient_phone = Column(String, nullable=True)
    recipient_zip_code = Column(String, nullable=True)
    recipient_address1 = Column(String, nullable=True)
    recipient_address2 = Column(String, nullable=True)

    # Плательщик (если отличается)
    depositor_name = Column(String, nullable=True)
    is_different_depositor = Column(Boolean, nullable=False, default=False)

    # Количество
    small_box_quantity = Column(Integer, nullable=False, default=0)   # 한과1호
    large_box_quantity = Column(Integer, nullable=False, default=0)   # 한과2호
    wrapping_quantity = Column(Integer, nullable=False, default=0)    # 보자기

    # Суммы (воны, целые)
    shipping_fee = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False)
    actual_paid_amount = Column(Integer, nullable=True)
    discount_amount = Column(Integer, nullable=False, default=0)
    discount_reason = Column(String, nullable=True)

    # Цены на момент заказа
    small_box_price = Column(Integer, nullable=False, default=0)
    large_box_price = Column(Integer, nullable=False, default=0)
    wrapping_price = Column(Integer, nullable=False, default=0)

    # Себестоимость и прибыль - только для персонала
    small_box_cost = Column(Integer, nullable=False, default=0)
    large_box_cost = Column(Integer, nullable=False, default=0)
    wrapping_cost = Column(Integer, nullable=False, default=0)
    total_cost = Column(Integer, nullable=False, default=0)
    net_profit = Column(Integer, nullable=False, default=0)

    # Жизненный цикл
    status = Column(String, nullable=False, default=OrderStatus.pending.value, index=True)
    scheduled_date = Column(DateTime, nullable=True)
    delivered_date = Column(DateTime, nullable=True)
    seller_shipped = Column(Boolean, nullable=False, default=False)
    seller_shipped_date = Column(DateTime, nullable=True)
    payment_status = Column(String, nullable=False, default=PaymentStatus.pending.value)
    payment_confirmed_at = Column(DateTime, nullable=True)

    # Владелец
    order_password = Column(String, nullable=True)      # хэш пароля для неавторизованных
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Корзина
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
