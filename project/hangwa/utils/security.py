# hangwa/utils/security.py

"""
Модуль для работы с хэшированием паролей и JWT токенами.
Используется passlib с sha256_crypt, чтобы избежать проблем с bcrypt на Windows.
Тем же контекстом хэшируются пароли пользователей и пароли заказов.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jwt import encode, decode
from passlib.context import CryptContext

from hangwa.config import settings

pwd_context = CryptContext(schemes=["sha256_crypt"], deprecated="auto")

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    """
    Хэширует пароль.

    :param password: строка пароля
    :return: хэшированный пароль в виде строки
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Проверяет совпадение пароля с его хэшем.

    :param plain_password: строка пароля
    :param hashed_password: хэш из базы
    :return: True если пароль совпадает с хэшем, иначе False
    """
    if not plain_password or not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def new_session_id() -> str:
    return uuid.uuid4().hex


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Создаёт JWT токен.
    Вход: dict (например {"sub": "username", "sid": "..."})
    Выход: JWT строка
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.AUTH_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return encode(to_encode, settings.AUTH_SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Декодирует токен. ExpiredSignatureError / InvalidTokenError пробрасываются наверх."""
    return decode(token, settings.AUTH_SECRET_KEY, algorithms=[ALGORITHM])
