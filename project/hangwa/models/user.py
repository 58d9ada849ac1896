# hangwa/models/user.py

import enum
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from hangwa.utils.database import Base


class Role(str, enum.Enum):
    user = "user"
    manager = "manager"
    admin = "admin"

    @property
    def is_staff(self) -> bool:
        return self in (Role.manager, Role.admin)

    @property
    def can_edit_others_orders(self) -> bool:
        return self.is_staff

    @property
    def can_set_delivered(self) -> bool:
        # 발송완료 - только менеджер
        return self is Role.manager

    @property
    def can_manage_users(self) -> bool:
        return self is Role.admin


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False, default="")
    phone_number = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, default=Role.user.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    @property
    def role_enum(self) -> Role:
        return Role(self.role)
