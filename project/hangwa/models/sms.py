# hangwa/models/sms.py

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from hangwa.utils.database import Base

class SmsNotification(Base):
    __tablename__ = "sms_notifications"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    phone_number = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="sent")     # sent | failed
    sent_at = Column(DateTime, server_default=func.now(), nullable=False)
