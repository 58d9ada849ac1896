# hangwa/models/settings.py

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from hangwa.utils.database import Base

# ключ -> (значение по умолчанию, описание)
DEFAULT_SETTINGS = {
    "smallBoxPrice": (19000, "한과1호 판매가 (개당)"),
    "largeBoxPrice": (21000, "한과2호 판매가 (개당)"),
    "wrappingPrice": (1000, "보자기 포장 판매가 (개당)"),
    "smallBoxCost": (15000, "한과1호 원가 (개당)"),
    "largeBoxCost": (17000, "한과2호 원가 (개당)"),
    "wrappingCost": (500, "보자기 포장 원가 (개당)"),
    "shippingFee": (4000, "배송비 (무료배송 수량 미만 주문 시)"),
    "freeShippingThreshold": (6, "무료배송 최소 수량"),
}


class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False, index=True)
    value = Column(String, nullable=False)
    description = Column(String, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)


class AdminSettings(Base):
    __tablename__ = "admin_settings"

    id = Column(Integer, primary_key=True, index=True)
    admin_name = Column(String, nullable=False)
    admin_phone = Column(String, nullable=False)
    business_name = Column(String, nullable=False)      # подпись отправителя SMS
    business_address = Column(String, nullable=True)
    business_phone = Column(String, nullable=True)
    bank_account = Column(String, nullable=True)
    refund_shipping_fee = Column(Integer, nullable=False, default=3000)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
