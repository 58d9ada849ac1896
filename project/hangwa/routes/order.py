# hangwa/routes/order.py

from fastapi import APIRouter, Depends, Header, Request, Response, status
from typing import Optional

from hangwa.models.order import OrderStatus
from hangwa.models.user import User
from hangwa.schemas.base import BulkIdsRequest, BulkResult, MessageResponse
from hangwa.schemas.order import (
    OrderCreate, OrderUpdate, OrderPublic, OrderStaff,
    StatusUpdate, PaymentStatusUpdate, DateUpdate, SellerShippedRequest,
)
from hangwa.schemas.sms import SmsNotification
from hangwa.services.access import Actor, Staff, actor_for
from hangwa.services.order import (
    create_order_service,
    read_orders_service,
    read_order_for_actor,
    lookup_orders_service,
    read_my_orders_service,
    update_order_service,
    update_status_service,
    update_payment_status_service,
    update_order_date_service,
    mark_seller_shipped_service,
    export_orders_service,
    order_trash,
)
from hangwa.services.sms import read_order_sms_service
from hangwa.services.spreadsheet import orders_to_csv
from hangwa.routes.auth import get_optional_user, get_current_user, get_staff_user

router = APIRouter()
my_router = APIRouter()


async def get_actor(
    user: Optional[User] = Depends(get_optional_user),
    x_order_password: Optional[str] = Header(None, description="Пароль заказа для покупателя без входа"),
) -> Actor:
    return actor_for(user, x_order_password)


def present(order, actor: Actor):
    """Себестоимость и служебные поля видит только персонал."""
    if isinstance(actor, Staff):
        return OrderStaff.model_validate(order)
    return OrderPublic.model_validate(order)


# ────────────── CREATE ──────────────
@router.post(
    "",
    response_model=OrderPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Оформить заказ",
    response_description="Созданный заказ с номером и суммой, рассчитанной сервером",
    responses={
        201: {"description": "Заказ создан"},
        400: {"description": "Пустой заказ или сумма клиента не совпала с расчётом"},
        422: {"description": "Неверные данные запроса"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def create_order(request: Request, order: OrderCreate, user: Optional[User] = Depends(get_optional_user)):
    """
    Публичная форма заказа. Если покупатель вошёл, заказ привязывается к его учётной записи.
    Гость может задать `orderPassword`, чтобы потом изменить заказ.
    """
    try:
        return await create_order_service(order, request, user)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при создании заказа: {str(e)}")
        raise


# ────────────── READ ALL ──────────────
@router.get(
    "",
    response_model=list[OrderStaff],
    summary="Список заказов (персонал)",
    responses={
        200: {"description": "Список заказов"},
        401: {"description": "Нет токена"},
        403: {"description": "Роль user"},
    },
)
async def read_orders(
    request: Request,
    status: Optional[OrderStatus] = None,
    skip: int = 0,
    limit: int = 500,
    _: User = Depends(get_staff_user),
):
    try:
        return await read_orders_service(request, status, skip, limit)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при получении списка заказов: {str(e)}")
        raise


# ────────────── LOOKUP ──────────────
@router.get(
    "/lookup",
    response_model=list[OrderPublic],
    summary="Поиск заказов покупателем",
    responses={
        200: {"description": "Найденные заказы"},
        400: {"description": "Не указан ни телефон, ни имя"},
        404: {"description": "Совпадений нет"},
    },
)
async def lookup_orders(request: Request, phone: Optional[str] = None, name: Optional[str] = None):
    """Точное совпадение по телефону или имени; достаточно одного из полей."""
    return await lookup_orders_service(phone, name, request)


# ────────────── TRASH ──────────────
@router.get("/trash", response_model=list[OrderStaff], summary="Корзина заказов")
async def read_deleted_orders(request: Request, _: User = Depends(get_staff_user)):
    return await order_trash.list_deleted(request)


# ────────────── EXPORT ──────────────
@router.get("/export/csv", summary="Выгрузка заказов в CSV (Excel)")
async def export_orders(request: Request, _: User = Depends(get_staff_user)):
    try:
        orders = await export_orders_service(request)
        content = orders_to_csv(orders)
        await request.app.state.log.log_info("order", "Выгрузка заказов", {"count": len(orders)})
        return Response(
            content=content.encode("utf-8"),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": 'attachment; filename="orders.csv"'},
        )
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка выгрузки заказов: {str(e)}")
        raise


# ────────────── SELLER SHIPPED (bulk) ──────────────
@router.patch(
    "/seller-shipped",
    response_model=BulkResult,
    summary="Отметить заказы отправленными (менеджер)",
)
async def mark_seller_shipped(body: SellerShippedRequest, request: Request, actor: Actor = Depends(get_actor)):
    try:
        return await mark_seller_shipped_service(body.order_ids, actor, request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка отметки отправки: {str(e)}", {"ids": body.order_ids})
        raise


@router.post("/bulk-delete", response_model=BulkResult, summary="Пакетно в корзину")
async def bulk_delete_orders(body: BulkIdsRequest, request: Request, _: User = Depends(get_staff_user)):
    return await order_trash.bulk_soft_delete(body.ids, request)


@router.post("/bulk-restore", response_model=BulkResult, summary="Пакетно восстановить")
async def bulk_restore_orders(body: BulkIdsRequest, request: Request, _: User = Depends(get_staff_user)):
    return await order_trash.bulk_restore(body.ids, request)


@router.post("/bulk-permanent-delete", response_model=BulkResult, summary="Пакетно удалить навсегда")
async def bulk_permanent_delete_orders(body: BulkIdsRequest, request: Request, _: User = Depends(get_staff_user)):
    return await order_trash.bulk_permanent_delete(body.ids, request)


# ────────────── READ ONE ──────────────
@router.get(
    "/{id}",
    response_model=None,
    summary="Получить заказ по ID",
    responses={
        200: {"model": OrderStaff, "description": "Персонал получает OrderStaff, покупатель - OrderPublic"},
        403: {"description": "Чужой заказ или неверный пароль заказа"},
        404: {"description": "Заказ не найден"},
    },
)
async def read_order(id: int, request: Request, actor: Actor = Depends(get_actor)):
    try:
        return present(await read_order_for_actor(id, actor, request), actor)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при получении заказа: {str(e)}", {"id": id})
        raise


# ────────────── UPDATE ──────────────
@router.patch(
    "/{id}",
    response_model=None,
    summary="Изменить заказ",
    responses={
        200: {"model": OrderPublic, "description": "Заказ обновлён"},
        400: {"description": "Пустой заказ или сумма клиента не совпала с расчётом"},
        403: {"description": "Чужой заказ или неверный пароль заказа"},
        404: {"description": "Заказ не найден"},
        409: {"description": "Заказ уже оплачен или в обработке"},
    },
)
async def update_order(id: int, order_update: OrderUpdate, request: Request,
                       user: Optional[User] = Depends(get_optional_user)):
    """
    Покупатель меняет заказ, пока он не оплачен и не взят в работу.
    Гость передаёт `orderPassword` в теле.
    """
    actor = actor_for(user, order_update.order_password)
    try:
        return present(await update_order_service(id, order_update, actor, request), actor)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при обновлении заказа: {str(e)}", {"id": id})
        raise


@router.patch(
    "/{id}/status",
    response_model=OrderStaff,
    summary="Сменить статус заказа",
    responses={
        403: {"description": "Не персонал, или администратор ставит 발송완료"},
        404: {"description": "Заказ не найден"},
        409: {"description": "Заказ в корзине или статус изменён параллельно"},
    },
)
async def update_order_status(id: int, body: StatusUpdate, request: Request, user: User = Depends(get_current_user)):
    try:
        return await update_status_service(id, body.status, actor_for(user), request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка смены статуса: {str(e)}", {"id": id, "status": body.status})
        raise


@router.patch(
    "/{id}/payment-status",
    response_model=OrderStaff,
    summary="Сменить статус оплаты",
    responses={403: {"description": "Не персонал"}, 404: {"description": "Заказ не найден"}},
)
async def update_payment_status(id: int, body: PaymentStatusUpdate, request: Request,
                                user: User = Depends(get_current_user)):
    try:
        return await update_payment_status_service(id, body, actor_for(user), request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка смены оплаты: {str(e)}", {"id": id})
        raise


async def _update_date(id: int, field: str, body: DateUpdate, request: Request, user: User):
    try:
        return await update_order_date_service(id, field, body.date, actor_for(user), request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка изменения даты: {str(e)}", {"id": id, "field": field})
        raise


@router.patch("/{id}/scheduled-date", response_model=OrderStaff, summary="Дата отправки по расписанию")
async def update_scheduled_date(id: int, body: DateUpdate, request: Request, user: User = Depends(get_current_user)):
    return await _update_date(id, "scheduled_date", body, request, user)


@router.patch(
    "/{id}/delivered-date",
    response_model=OrderStaff,
    summary="Дата 발송완료",
    responses={409: {"description": "Заказ ещё не в статусе delivered"}},
)
async def update_delivered_date(id: int, body: DateUpdate, request: Request, user: User = Depends(get_current_user)):
    return await _update_date(id, "delivered_date", body, request, user)


@router.patch(
    "/{id}/seller-shipped-date",
    response_model=OrderStaff,
    summary="Дата отправки менеджером",
    responses={409: {"description": "Заказ ещё не отмечен как отправленный"}},
)
async def update_seller_shipped_date(id: int, body: DateUpdate, request: Request,
                                     user: User = Depends(get_current_user)):
    return await _update_date(id, "seller_shipped_date", body, request, user)


# ────────────── SMS ──────────────
@router.get("/{id}/sms", response_model=list[SmsNotification], summary="SMS по заказу")
async def read_order_sms(id: int, request: Request, user: User = Depends(get_current_user)):
    return await read_order_sms_service(id, actor_for(user), request)


# ────────────── DELETE (корзина) ──────────────
@router.delete("/{id}", response_model=OrderStaff, summary="Переместить заказ в корзину")
async def delete_order(id: int, request: Request, _: User = Depends(get_staff_user)):
    try:
        return await order_trash.soft_delete(id, request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка при удалении заказа: {str(e)}", {"id": id})
        raise


@router.post("/{id}/restore", response_model=OrderStaff, summary="Восстановить заказ из корзины")
async def restore_order(id: int, request: Request, _: User = Depends(get_staff_user)):
    return await order_trash.restore(id, request)


@router.delete(
    "/{id}/permanent",
    response_model=MessageResponse,
    summary="Удалить заказ навсегда",
    responses={409: {"description": "Заказ не в корзине"}},
)
async def permanent_delete_order(id: int, request: Request, _: User = Depends(get_staff_user)):
    """Навсегда удаляются только заказы из корзины."""
    try:
        await order_trash.permanent_delete(id, request)
        return {"detail": "주문이 영구 삭제되었습니다"}
    except Exception as e:
        await request.app.state.log.log_error("order", f"Ошибка окончательного удаления: {str(e)}", {"id": id})
        raise


# ────────────── Мои заказы ──────────────
@my_router.get("", response_model=list[OrderPublic], summary="Заказы текущего пользователя")
async def read_my_orders(request: Request, user: User = Depends(get_current_user)):
    return await read_my_orders_service(user, request)
