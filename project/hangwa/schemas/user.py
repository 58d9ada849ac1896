# hangwa/schemas/user.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from hangwa.models.user import Role
from hangwa.schemas.base import CamelModel

class UserCreate(CamelModel):
    """
    Схема регистрации. Роль не принимается - все новые пользователи обычные.
    """
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=4)
    name: str = ""
    phone_number: str = ""

class UserResponse(CamelModel):
    """
    Схема для ответа API при чтении пользователя
    """
    id: int
    username: str
    name: str
    phone_number: str
    role: Role
    is_active: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None

class RoleUpdate(CamelModel):
    role: Role

class ActiveUpdate(CamelModel):
    is_active: bool

class PasswordChange(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=4)

class TokenResponse(BaseModel):
    # snake_case: формат ответа OAuth2, его читает Swagger UI
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class SessionResponse(CamelModel):
    session_id: str
    user_id: int
    ip_address: str
    user_agent: str
    is_active: bool
    is_current: bool = False
    last_activity: datetime
    created_at: datetime
    expires_at: datetime
