# hangwa/utils/errors.py

"""
Ошибки предметной области.

Сервисы бросают эти исключения, обработчик в main.py превращает их
в JSON-ответ {"detail": ...} с нужным HTTP-кодом.
"""

from typing import Optional


class ShopError(Exception):
    status_code = 500

    def __init__(self, detail: str, field: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.field = field

    def to_dict(self) -> dict:
        body = {"detail": self.detail}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(ShopError):
    """Некорректные или отсутствующие поля запроса."""
    status_code = 400


class AuthenticationError(ShopError):
    """Нет сессии / токен недействителен."""
    status_code = 401


class AuthorizationError(ShopError):
    """Сессия есть, но прав недостаточно или заказ чужой."""
    status_code = 403


class NotFoundError(ShopError):
    status_code = 404


class ConflictError(ShopError):
    """Запись уже вышла из состояния, в котором её можно менять."""
    status_code = 409


class UpstreamError(ShopError):
    """Сбой внешнего исполнителя (SMS, файл таблицы)."""
    status_code = 502
