# hangwa/services/access.py

"""
Кто может читать и менять заказ.

Три варианта участника:
    Anonymous - покупатель без входа, может прислать пароль заказа
    Member    - вошедший пользователь с ролью user (владелец своих заказов)
    Staff     - manager или admin, доступ ко всем заказам

Отказ в доступе - AuthorizationError (403), его нельзя путать
с NotFoundError (404), который означает отсутствие записи.
"""

from dataclasses import dataclass
from typing import Optional, Union

from hangwa.models.order import Order, OrderStatus
from hangwa.models.user import User, Role
from hangwa.utils.errors import AuthorizationError
from hangwa.utils.security import verify_password


@dataclass(frozen=True)
class Anonymous:
    password: Optional[str] = None


@dataclass(frozen=True)
class Member:
    user: User
    password: Optional[str] = None


@dataclass(frozen=True)
class Staff:
    user: User

    @property
    def role(self) -> Role:
        return self.user.role_enum


Actor = Union[Anonymous, Member, Staff]


def actor_for(user: Optional[User], password: Optional[str] = None) -> Actor:
    if user is None:
        return Anonymous(password=password)
    if user.role_enum.is_staff:
        return Staff(user=user)
    return Member(user=user, password=password)


def is_owner(order: Order, actor: Actor) -> bool:
    return isinstance(actor, Member) and order.user_id is not None and order.user_id == actor.user.id


def _password_matches(order: Order, password: Optional[str]) -> bool:
    # у гостевого заказа без пароля проверять нечего
    if not order.order_password:
        return True
    return verify_password(password or "", order.order_password)


def ensure_order_access(order: Order, actor: Actor) -> None:
    """Чтение и изменение заказа по ID."""
    if isinstance(actor, Staff):
        return
    if is_owner(order, actor):
        return
    if order.user_id is not None:
        raise AuthorizationError("본인의 주문만 조회/수정할 수 있습니다")
    if not _password_matches(order, actor.password):
        raise AuthorizationError("주문 비밀번호가 올바르지 않습니다")


def ensure_staff(actor: Actor) -> Staff:
    if not isinstance(actor, Staff):
        raise AuthorizationError("권한이 없습니다")
    return actor


def ensure_can_set_status(actor: Actor, status: OrderStatus) -> None:
    """Статус меняет только персонал; 발송완료 ставит только менеджер."""
    staff = ensure_staff(actor)
    if status == OrderStatus.delivered and not staff.role.can_set_delivered:
        raise AuthorizationError("발송완료 처리는 매니저만 할 수 있습니다")
