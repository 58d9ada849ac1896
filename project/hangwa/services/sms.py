# hangwa/services/sms.py

"""
SMS-уведомления по заказам.

Сервис только составляет текст и записывает попытку в sms_notifications;
саму доставку выполняет dispatcher из app.state.sms_dispatcher.
Сбой доставки не откатывает заказ: попытка записывается со статусом failed,
клиенту возвращается UpstreamError.
"""

from datetime import datetime
from typing import Optional, Protocol

from fastapi import Request
from sqlalchemy.future import select

from hangwa.config import settings
from hangwa.models.order import Order as OrderModel, OrderStatus, PaymentStatus
from hangwa.models.sms import SmsNotification as SmsModel
from hangwa.models.settings import AdminSettings as AdminSettingsModel
from hangwa.schemas.sms import DraftKind, SmsSend
from hangwa.services.access import Actor, ensure_staff
from hangwa.services.order import read_order_service
from hangwa.utils.errors import UpstreamError

DEFAULT_SENDER = "에덴한과"


class NotificationDispatcher(Protocol):
    async def send(self, phone_number: str, message: str) -> bool: ...


class LogDispatcher:
    """Доставка по умолчанию: сообщение пишется в журнал (SMS отправляет оператор с телефона)."""

    def __init__(self, log):
        self.log = log

    async def send(self, phone_number: str, message: str) -> bool:
        if not settings.SMS_ENABLED:
            await self.log.log_warning("sms", "Отправка SMS отключена (SMS_ENABLED=0)", {"phone": phone_number})
            return False
        await self.log.log_info("sms", "SMS к отправке", {"phone": phone_number, "message": message})
        return True


def _time_str(now: datetime) -> str:
    return f"{now:%m. %d. %H:%M}"


def draft_message(order: OrderModel, kind: DraftKind, sender: str = DEFAULT_SENDER,
                  now: Optional[datetime] = None) -> str:
    """Шаблон сообщения покупателю."""
    now = now or datetime.now()
    time_str = _time_str(now)
    head = f"[{sender}] {order.customer_name}님"

    if kind == DraftKind.status:
        return f"{head}, 주문이 접수되었습니다. (주문시간: {time_str}) 감사합니다."
    if kind == DraftKind.payment:
        if order.payment_status in (PaymentStatus.confirmed.value, PaymentStatus.partial.value):
            body = f"입금이 확인되었습니다. (확인시간: {time_str})"
        else:
            body = {
                OrderStatus.pending.value: f"주문이 접수되었습니다. (주문시간: {time_str})",
                OrderStatus.scheduled.value: f"발송이 예약되었습니다. (예약시간: {time_str})",
                OrderStatus.seller_shipped.value: f"상품이 발송되었습니다. (발송시간: {time_str})",
                OrderStatus.delivered.value: f"상품이 배송완료되었습니다. (배송완료시간: {time_str})",
            }.get(order.status, f"상태가 업데이트되었습니다. (업데이트시간: {time_str})")
        return f"{head}, {body} 감사합니다."
    if kind == DraftKind.shipping:
        return f"{head}, 상품이 발송되었습니다. 3일이내 미 도착 시 반드시 연락주세요. 감사합니다. ^^"
    return f"{head}께 개별 안내드립니다."


async def _sender_name(request: Request) -> str:
    result = await request.state.db.execute(select(AdminSettingsModel).order_by(AdminSettingsModel.id).limit(1))
    admin_settings = result.scalar_one_or_none()
    return admin_settings.business_name if admin_settings else DEFAULT_SENDER


async def draft_sms_service(order_id: int, kind: DraftKind, actor: Actor, request: Request) -> dict:
    ensure_staff(actor)
    order = await read_order_service(order_id, request)
    return {
        "order_id": order.id,
        "phone_number": order.customer_phone,
        "kind": kind,
        "message": draft_message(order, kind, await _sender_name(request)),
    }


async def send_sms_service(data: SmsSend, actor: Actor, request: Request) -> SmsModel:
    db = request.state.db
    log = request.app.state.log
    dispatcher: NotificationDispatcher = request.app.state.sms_dispatcher

    ensure_staff(actor)
    order = await read_order_service(data.order_id, request)
    phone = data.phone_number or order.customer_phone

    error = None
    try:
        delivered = await dispatcher.send(phone, data.message)
    except Exception as e:
        delivered = False
        error = str(e)

    notification = SmsModel(
        order_id=order.id,
        phone_number=phone,
        message=data.message,
        status="sent" if delivered else "failed",
    )
    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    if not delivered:
        await log.log_error("sms", "SMS не доставлено", {"order_id": order.id, "phone": phone, "error": error})
        raise UpstreamError("SMS 발송에 실패했습니다")

    await log.log_info("sms", "SMS отправлено", {"order_id": order.id, "id": notification.id})
    return notification


async def read_order_sms_service(order_id: int, actor: Actor, request: Request) -> list[SmsModel]:
    ensure_staff(actor)
    await read_order_service(order_id, request)
    result = await request.state.db.execute(
        select(SmsModel).where(SmsModel.order_id == order_id).order_by(SmsModel.sent_at.desc(), SmsModel.id.desc())
    )
    return result.scalars().all()


async def read_sms_history_service(actor: Actor, request: Request, limit: int = 200) -> list[SmsModel]:
    ensure_staff(actor)
    result = await request.state.db.execute(
        select(SmsModel).order_by(SmsModel.sent_at.desc(), SmsModel.id.desc()).limit(limit)
    )
    return result.scalars().all()
