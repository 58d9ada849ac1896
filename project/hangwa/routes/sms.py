# hangwa/routes/sms.py

from fastapi import APIRouter, Depends, Request, status
from typing import List

from hangwa.models.user import User
from hangwa.schemas.sms import DraftKind, SmsDraft, SmsSend, SmsNotification
from hangwa.services.access import actor_for
from hangwa.services.sms import draft_sms_service, send_sms_service, read_sms_history_service
from hangwa.routes.auth import get_current_user

router = APIRouter()


@router.get(
    "/draft/{order_id}",
    response_model=SmsDraft,
    summary="Черновик SMS по заказу",
    responses={403: {"description": "Не персонал"}, 404: {"description": "Заказ не найден"}},
)
async def draft_sms(order_id: int, request: Request, kind: DraftKind = DraftKind.status,
                    user: User = Depends(get_current_user)):
    """
    Текст по шаблону: `status` - приём заказа, `payment` - оплата или текущий статус,
    `shipping` - отправка, `custom` - заготовка для своего текста.
    """
    return await draft_sms_service(order_id, kind, actor_for(user), request)


@router.post(
    "/send",
    response_model=SmsNotification,
    status_code=status.HTTP_201_CREATED,
    summary="Отправить SMS",
    responses={
        201: {"description": "Сообщение отправлено и записано в журнал"},
        502: {"description": "Сбой доставки; попытка записана со статусом failed"},
    },
)
async def send_sms(body: SmsSend, request: Request, user: User = Depends(get_current_user)):
    try:
        return await send_sms_service(body, actor_for(user), request)
    except Exception as e:
        await request.app.state.log.log_error("sms", f"Ошибка отправки SMS: {str(e)}", {"order_id": body.order_id})
        raise


@router.get("", response_model=List[SmsNotification], summary="Журнал SMS")
async def read_sms_history(request: Request, limit: int = 200, user: User = Depends(get_current_user)):
    return await read_sms_history_service(actor_for(user), request, limit)
