# hangwa/services/order.py

from datetime import datetime
from typing import Optional

from fastapi import Request
from pydantic.alias_generators import to_camel
from sqlalchemy import delete, update, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from hangwa.models.order import Order as OrderModel, OrderStatus, PaymentStatus
from hangwa.models.sms import SmsNotification as SmsModel
from hangwa.models.user import User
from hangwa.schemas.order import OrderCreate, OrderUpdate, PaymentStatusUpdate
from hangwa.services.access import (
    Actor, Staff, ensure_order_access, ensure_staff, ensure_can_set_status,
)
from hangwa.services.customer import register_order_customer
from hangwa.services.pricing import PriceTable, calculate_pricing, calculate_costs
from hangwa.services.settings import read_price_table
from hangwa.services.trash import Trash
from hangwa.utils.errors import ValidationError, NotFoundError, ConflictError
from hangwa.utils.security import hash_password

ORDER_NUMBER_PREFIX = "ED"
ORDER_NUMBER_ATTEMPTS = 3

# поля, которые покупатель может менять сам
EDITABLE_FIELDS = (
    "customer_name", "customer_phone", "zip_code", "address1", "address2", "special_requests",
    "recipient_name", "recipient_phone", "recipient_zip_code", "recipient_address1", "recipient_address2",
    "depositor_name", "is_different_depositor",
    "small_box_quantity", "large_box_quantity", "wrapping_quantity",
)

# поле даты -> (условие, при котором дату можно поставить, сообщение)
DATE_PRECONDITIONS = {
    "scheduled_date": (lambda order: True, ""),
    "delivered_date": (
        lambda order: order.status == OrderStatus.delivered.value,
        "발송완료 상태의 주문에만 발송완료일을 지정할 수 있습니다",
    ),
    "seller_shipped_date": (
        lambda order: bool(order.seller_shipped),
        "매니저 발송 처리된 주문에만 발송일을 지정할 수 있습니다",
    ),
}


async def _purge_sms(db, order_ids: list[int]) -> None:
    await db.execute(delete(SmsModel).where(SmsModel.order_id.in_(order_ids)))

order_trash = Trash(OrderModel, target="order", label="주문", on_purge=_purge_sms)


# ────────────── Вспомогательные ──────────────
def _validate_quantities(small: int, large: int) -> None:
    if small + large < 1:
        raise ValidationError("한과 상자를 1개 이상 주문해주세요", field="smallBoxQuantity")


def _verify_client_total(client_total: Optional[int], server_total: int) -> None:
    """Сумма от клиента не сохраняется - только сверяется с расчётом сервера."""
    if client_total is not None and client_total != server_total:
        raise ValidationError(
            f"주문 금액이 일치하지 않습니다 (요청: {client_total}, 계산: {server_total})",
            field="totalAmount",
        )


def _pricing_values(small: int, large: int, wrapping: int, prices: PriceTable,
                    actual_paid: Optional[int]) -> dict:
    # total_amount хранится без скидки: скидка живёт в discount_amount и net_profit
    pricing = calculate_pricing(small, large, wrapping, prices)
    costs = calculate_costs(
        small, large, wrapping,
        prices.small_box_cost, prices.large_box_cost, prices.wrapping_cost,
        pricing.shipping_fee,
        revenue=actual_paid if actual_paid is not None else pricing.total_amount,
    )
    return {
        "shipping_fee": pricing.shipping_fee,
        "total_amount": pricing.total_amount,
        "small_box_price": prices.small_box_price,
        "large_box_price": prices.large_box_price,
        "wrapping_price": prices.wrapping_price,
        "small_box_cost": prices.small_box_cost,
        "large_box_cost": prices.large_box_cost,
        "wrapping_cost": prices.wrapping_cost,
        "total_cost": costs.total_cost,
        "net_profit": costs.net_profit,
    }


def _net_profit(order: OrderModel, actual_paid: Optional[int]) -> int:
    revenue = actual_paid if actual_paid is not None else order.total_amount
    costs = calculate_costs(
        order.small_box_quantity, order.large_box_quantity, order.wrapping_quantity,
        order.small_box_cost, order.large_box_cost, order.wrapping_cost,
        order.shipping_fee, revenue,
    )
    return costs.net_profit


async def generate_order_number(db, now: Optional[datetime] = None) -> str:
    """ED + YYYYMMDD + порядковый номер заказа за день (01, 02, ...)."""
    now = now or datetime.now()
    prefix = f"{ORDER_NUMBER_PREFIX}{now:%Y%m%d}"
    result = await db.execute(select(OrderModel.order_number).where(OrderModel.order_number.like(f"{prefix}%")))
    sequences = [int(n[len(prefix):]) for n in result.scalars().all() if n[len(prefix):].isdigit()]
    return f"{prefix}{(max(sequences, default=0) + 1):02d}"


async def _commit_and_reload(db, order: OrderModel) -> OrderModel:
    await db.commit()
    await db.refresh(order)
    return order


# ────────────── CREATE ──────────────
async def create_order_service(data: OrderCreate, request: Request, user: Optional[User] = None) -> OrderModel:
    """
    Оформление заказа (публичная форма).
    Стоимость доставки и итог считаются на сервере по текущим настройкам.
    """
    db = request.state.db
    log = request.app.state.log

    _validate_quantities(data.small_box_quantity, data.large_box_quantity)
    prices = await read_price_table(request)
    values = _pricing_values(
        data.small_box_quantity, data.large_box_quantity, data.wrapping_quantity,
        prices, actual_paid=None,
    )
    _verify_client_total(data.total_amount, values["total_amount"])

    fields = data.model_dump(exclude={"total_amount", "order_password"})
    password_hash = hash_password(data.order_password) if data.order_password else None
    user_id = user.id if user else None
    for attempt in range(ORDER_NUMBER_ATTEMPTS):
        order = OrderModel(
            **fields,
            **values,
            order_number=await generate_order_number(db),
            status=OrderStatus.pending.value,
            payment_status=PaymentStatus.pending.value,
            discount_amount=0,
            order_password=password_hash,
            user_id=user_id,
        )
        db.add(order)
        try:
            await db.flush()
        except IntegrityError:
            # номер занят параллельным заказом - берём следующий
            await db.rollback()
            await log.log_warning("order", "Номер заказа занят, повтор", {"attempt": attempt + 1})
            continue
        await register_order_customer(order, db)
        await _commit_and_reload(db, order)
        await log.log_info("order", "Заказ создан", {"id": order.id, "order_number": order.order_number})
        return order

    raise ConflictError("주문번호 생성에 실패했습니다. 다시 시도해주세요")


# ────────────── READ ──────────────
async def read_orders_service(request: Request, status: Optional[OrderStatus] = None,
                              skip: int = 0, limit: int = 500) -> list[OrderModel]:
    """Список заказов для персонала (без корзины)."""
    db = request.state.db
    log = request.app.state.log

    query = select(OrderModel).where(OrderModel.is_deleted.is_(False))
    if status is not None:
        query = query.where(OrderModel.status == status.value)
    query = query.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).offset(skip).limit(limit)

    result = await db.execute(query)
    orders = result.scalars().all()
    await log.log_info("order", f"{len(orders)} заказов загружено")
    return orders


async def read_order_service(id: int, request: Request) -> OrderModel:
    """
    Чтение заказа по ID.
    """
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(OrderModel).where(OrderModel.id == id))
    db_order = result.scalar_one_or_none()
    if db_order is None:
        await log.log_error("order", "Заказ не найден", {"id": id})
        raise NotFoundError("주문을 찾을 수 없습니다")
    return db_order


async def read_order_for_actor(id: int, actor: Actor, request: Request) -> OrderModel:
    order = await read_order_service(id, request)
    if order.is_deleted and not isinstance(actor, Staff):
        raise NotFoundError("주문을 찾을 수 없습니다")
    ensure_order_access(order, actor)
    return order


async def lookup_orders_service(phone: Optional[str], name: Optional[str], request: Request) -> list[OrderModel]:
    """
    Поиск заказов покупателем: по телефону и/или имени, точное совпадение.
    Достаточно одного поля; при обоих - совпадение по любому.
    """
    db = request.state.db
    log = request.app.state.log

    phone = (phone or "").strip()
    name = (name or "").strip()
    if not phone and not name:
        raise ValidationError("전화번호 또는 이름을 입력해주세요", field="phone")

    conditions = []
    if phone:
        conditions.append(OrderModel.customer_phone == phone)
    if name:
        conditions.append(OrderModel.customer_name == name)

    result = await db.execute(
        select(OrderModel)
        .where(OrderModel.is_deleted.is_(False), or_(*conditions))
        .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
    )
    orders = result.scalars().all()
    if not orders:
        await log.log_info("order", "Поиск заказов без результата", {"phone": phone, "name": name})
        raise NotFoundError("일치하는 주문이 없습니다")
    return orders


async def read_my_orders_service(user: User, request: Request) -> list[OrderModel]:
    db = request.state.db
    result = await db.execute(
        select(OrderModel)
        .where(OrderModel.user_id == user.id, OrderModel.is_deleted.is_(False))
        .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
    )
    return result.scalars().all()


# ────────────── UPDATE ──────────────
def _is_customer_editable(order: OrderModel) -> bool:
    return (
        order.status == OrderStatus.pending.value
        and order.payment_status == PaymentStatus.pending.value
        and not order.is_deleted
    )


async def update_order_service(id: int, data: OrderUpdate, actor: Actor, request: Request) -> OrderModel:
    """
    Изменение полей заказа.

    Покупатель (владелец или гость с паролем) может менять заказ, пока
    status == pending и payment_status == pending; проверка повторяется
    в самом UPDATE, чтобы не затереть параллельную смену статуса персоналом.
    Сумма всегда пересчитывается на сервере.
    """
    db = request.state.db
    log = request.app.state.log

    order = await read_order_for_actor(id, actor, request)
    is_staff = isinstance(actor, Staff)
    if not is_staff and not _is_customer_editable(order):
        await log.log_warning("order", "Попытка изменить заказ вне состояния pending", {"id": id})
        raise ConflictError("입금 확인 또는 발송 처리된 주문은 수정할 수 없습니다")

    changes = data.model_dump(exclude_unset=True, exclude={"order_password", "total_amount"})
    changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
    for required in ("customer_name", "customer_phone", "address1", "is_different_depositor"):
        if required in changes and changes[required] is None:
            raise ValidationError("필수 항목입니다", field=to_camel(required))

    small = changes.get("small_box_quantity", order.small_box_quantity)
    large = changes.get("large_box_quantity", order.large_box_quantity)
    wrapping = changes.get("wrapping_quantity", order.wrapping_quantity)
    if small is None or large is None or wrapping is None:
        raise ValidationError("수량은 비워둘 수 없습니다", field="smallBoxQuantity")
    _validate_quantities(small, large)

    prices = await read_price_table(request)
    values = _pricing_values(
        small, large, wrapping, prices, actual_paid=order.actual_paid_amount,
    )
    _verify_client_total(data.total_amount, values["total_amount"])
    values.update(changes)

    statement = update(OrderModel).where(OrderModel.id == id)
    if not is_staff:
        statement = statement.where(
            OrderModel.status == OrderStatus.pending.value,
            OrderModel.payment_status == PaymentStatus.pending.value,
            OrderModel.is_deleted.is_(False),
        )
    result = await db.execute(statement.values(**values))
    if result.rowcount == 0:
        await db.rollback()
        await log.log_warning("order", "Заказ изменён параллельно, правка отклонена", {"id": id})
        raise ConflictError("주문 상태가 변경되어 수정할 수 없습니다")

    await _commit_and_reload(db, order)
    await log.log_info("order", "Заказ обновлён", {"id": id, "fields": list(changes), "staff": is_staff})
    return order


async def update_status_service(id: int, status: OrderStatus, actor: Actor, request: Request) -> OrderModel:
    """
    Смена статуса заказа персоналом.
    Повторная установка того же статуса ничего не меняет.
    """
    db = request.state.db
    log = request.app.state.log

    ensure_can_set_status(actor, status)
    order = await read_order_service(id, request)
    if order.is_deleted:
        raise ConflictError("휴지통에 있는 주문입니다")
    if order.status == status.value:
        return order

    now = datetime.now()
    values = {"status": status.value}
    if status == OrderStatus.delivered:
        values["delivered_date"] = now
    if status == OrderStatus.seller_shipped:
        values["seller_shipped"] = True
        values["seller_shipped_date"] = order.seller_shipped_date or now

    previous = order.status
    result = await db.execute(
        update(OrderModel)
        .where(OrderModel.id == id, OrderModel.status == previous)
        .values(**values)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise ConflictError("다른 사용자가 먼저 주문 상태를 변경했습니다")

    await _commit_and_reload(db, order)
    await log.log_info("order", "Статус заказа изменён", {"id": id, "from": previous, "to": status.value})
    return order


def _payment_values(order: OrderModel, data: PaymentStatusUpdate, now: datetime) -> dict:
    """
    Новое состояние оплаты. При подтверждении с фактической суммой:
        недоплата + причина со словом 할인 -> скидка, confirmed
        недоплата без неё                  -> partial
        переплата                          -> confirmed с пометкой
    """
    status = data.payment_status
    values = {"payment_status": status.value}

    if status == PaymentStatus.confirmed and data.actual_paid_amount is not None:
        paid = data.actual_paid_amount
        difference = order.total_amount - paid
        values["actual_paid_amount"] = paid
        if difference > 0 and data.discount_reason and "할인" in data.discount_reason:
            values.update(discount_amount=difference, discount_reason=data.discount_reason)
        elif difference > 0:
            values.update(
                discount_amount=0,
                discount_reason=data.discount_reason or f"부분미입금 (미입금: {difference:,}원)",
                payment_status=PaymentStatus.partial.value,
            )
        elif difference < 0:
            values.update(
                discount_amount=0,
                discount_reason=data.discount_reason or f"과납입 ({-difference:,}원 추가 입금)",
            )
        else:
            values.update(discount_amount=0, discount_reason=None)
        values["net_profit"] = _net_profit(order, paid)

    confirmed = values["payment_status"] in (PaymentStatus.confirmed.value, PaymentStatus.partial.value)
    if confirmed:
        values["payment_confirmed_at"] = order.payment_confirmed_at or now
    else:
        values["payment_confirmed_at"] = None
    return values


async def update_payment_status_service(id: int, data: PaymentStatusUpdate, actor: Actor,
                                        request: Request) -> OrderModel:
    db = request.state.db
    log = request.app.state.log

    ensure_staff(actor)
    order = await read_order_service(id, request)
    if order.is_deleted:
        raise ConflictError("휴지통에 있는 주문입니다")
    if order.payment_status == data.payment_status.value and data.actual_paid_amount is None:
        return order

    values = _payment_values(order, data, datetime.now())
    previous = order.payment_status
    result = await db.execute(
        update(OrderModel)
        .where(OrderModel.id == id, OrderModel.payment_status == previous)
        .values(**values)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise ConflictError("다른 사용자가 먼저 입금 상태를 변경했습니다")

    await _commit_and_reload(db, order)
    await log.log_info("order", "Статус оплаты изменён",
                       {"id": id, "from": previous, "to": order.payment_status,
                        "actual_paid_amount": order.actual_paid_amount})
    return order


async def update_order_date_service(id: int, field: str, value: Optional[datetime], actor: Actor,
                                    request: Request) -> OrderModel:
    """
    Установка или очистка (value=None) даты: scheduled_date, delivered_date, seller_shipped_date.
    Поставить дату можно только если заказ уже в соответствующем состоянии.
    """
    db = request.state.db
    log = request.app.state.log

    ensure_staff(actor)
    precondition, message = DATE_PRECONDITIONS[field]
    order = await read_order_service(id, request)
    if order.is_deleted:
        raise ConflictError("휴지통에 있는 주문입니다")
    if value is not None and not precondition(order):
        raise ConflictError(message)

    setattr(order, field, value)
    await _commit_and_reload(db, order)
    await log.log_info("order", "Дата заказа изменена", {"id": id, "field": field, "value": value})
    return order


async def mark_seller_shipped_service(order_ids: list[int], actor: Actor, request: Request) -> dict:
    """Пакетная отметка «отправлено менеджером». Уже доставленные заказы пропускаются."""
    db = request.state.db
    log = request.app.state.log

    ensure_staff(actor)
    unique_ids = list(dict.fromkeys(order_ids))
    result = await db.execute(
        select(OrderModel.id, OrderModel.status)
        .where(OrderModel.id.in_(unique_ids), OrderModel.is_deleted.is_(False))
    )
    found = dict(result.all())
    missing = [i for i in unique_ids if i not in found]
    affected = [i for i, status in found.items() if status != OrderStatus.delivered.value]

    if affected:
        await db.execute(
            update(OrderModel)
            .where(OrderModel.id.in_(affected))
            .values(
                status=OrderStatus.seller_shipped.value,
                seller_shipped=True,
                seller_shipped_date=datetime.now(),
            )
        )
    await db.commit()

    summary = {
        "requested": len(unique_ids),
        "succeeded": len(affected),
        "not_found": len(missing),
        "not_found_ids": missing,
        "skipped": len(found) - len(affected),
    }
    await log.log_info("order", "Отметка отправки менеджером", summary)
    return summary


async def export_orders_service(request: Request) -> list[OrderModel]:
    db = request.state.db
    result = await db.execute(
        select(OrderModel)
        .where(OrderModel.is_deleted.is_(False))
        .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
    )
    return result.scalars().all()
