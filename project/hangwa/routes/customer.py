# hangwa/routes/customer.py

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from typing import List, Optional

from hangwa.models.user import User
from hangwa.schemas.base import BulkIdsRequest, BulkResult, MessageResponse
from hangwa.schemas.customer import (
    Customer, CustomerCreate, CustomerUpdate, CustomerAddress, UploadResult, RefreshStatsResult,
)
from hangwa.services.customer import (
    read_customers_service,
    create_customer_service,
    update_customer_service,
    read_addresses_service,
    refresh_stats_service,
    upload_customers_service,
    customer_trash,
)
from hangwa.routes.auth import get_current_user, get_staff_user

router = APIRouter()


# ────────────── READ ALL ──────────────
@router.get(
    "",
    response_model=List[Customer],
    summary="Список клиентов",
    responses={401: {"description": "Нет токена"}, 403: {"description": "Не персонал"}},
)
async def read_customers(request: Request, search: Optional[str] = None, _: User = Depends(get_staff_user)):
    """Клиенты вне корзины. `search` ищет по подстроке имени или телефона."""
    try:
        return await read_customers_service(request, search)
    except Exception as e:
        await request.app.state.log.log_error("customer", f"Ошибка при получении клиентов: {str(e)}")
        raise


# ────────────── CREATE ──────────────
@router.post(
    "",
    response_model=Customer,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить клиента",
    responses={409: {"description": "Телефон уже зарегистрирован"}},
)
async def create_customer(customer: CustomerCreate, request: Request, _: User = Depends(get_staff_user)):
    try:
        return await create_customer_service(customer, request)
    except Exception as e:
        await request.app.state.log.log_error("customer", f"Ошибка при создании клиента: {str(e)}")
        raise


@router.get("/trash", response_model=List[Customer], summary="Корзина клиентов")
async def read_deleted_customers(request: Request, _: User = Depends(get_staff_user)):
    return await customer_trash.list_deleted(request)


# ────────────── Пакетные операции ──────────────
@router.post(
    "/bulk-delete",
    response_model=BulkResult,
    summary="Пакетно переместить в корзину",
    response_description="Счётчики: запрошено, выполнено, не найдено",
)
async def bulk_delete_customers(body: BulkIdsRequest, request: Request, _: User = Depends(get_staff_user)):
    try:
        return await customer_trash.bulk_soft_delete(body.ids, request)
    except Exception as e:
        await request.app.state.log.log_error("customer", f"Ошибка пакетного удаления: {str(e)}", {"ids": body.ids})
        raise


@router.post("/bulk-restore", response_model=BulkResult, summary="Пакетно восстановить")
async def bulk_restore_customers(body: BulkIdsRequest, request: Request, _: User = Depends(get_staff_user)):
    try:
        return await customer_trash.bulk_restore(body.ids, request)
    except Exception as e:
        await request.app.state.log.log_error("customer", f"Ошибка пакетного восстановления: {str(e)}", {"ids": body.ids})
        raise


@router.post(
    "/bulk-permanent-delete",
    response_model=BulkResult,
    summary="Пакетно удалить навсегда",
    responses={200: {"description": "Записи вне корзины учитываются в skipped"}},
)
async def bulk_permanent_delete_customers(body: BulkIdsRequest, request: Request, _: User = Depends(get_staff_user)):
    try:
        return await customer_trash.bulk_permanent_delete(body.ids, request)
    except Exception as e:
        await request.app.state.log.log_error("customer", f"Ошибка окончательного удаления: {str(e)}", {"ids": body.ids})
        raise


# ────────────── Импорт / статистика ──────────────
@router.post(
    "/upload",
    response_model=UploadResult,
    summary="Импорт клиентов из CSV",
    responses={400: {"description": "Файл не читается или нет обязательных колонок"}},
)
async def upload_customers(request: Request, file: UploadFile = File(...), _: User = Depends(get_staff_user)):
    """
    Колонки: `customer_name`/`이름`, `customer_phone`/`전화번호`, адрес и заметки - по желанию.
    Строки без имени или телефона пропускаются и перечисляются в `errors`.
    """
    try:
        content = await file.read()
        return await upload_customers_service(content, request)
    except Exception as e:
        await request.app.state.log.log_error("customer", f"Ошибка импорта: {str(e)}", {"filename": file.filename})
        raise


@router.post("/refresh-stats", response_model=RefreshStatsResult, summary="Пересчитать статистику клиентов")
async def refresh_stats(request: Request, _: User = Depends(get_staff_user)):
    return {"updated": await refresh_stats_service(request)}


# ────────────── Адресная книга ──────────────
@router.get(
    "/{phone}/addresses",
    response_model=List[CustomerAddress],
    summary="Адреса клиента по телефону",
    responses={404: {"description": "Адресов нет"}},
)
async def read_addresses(phone: str, request: Request, _: User = Depends(get_current_user)):
    return await read_addresses_service(phone, request)


# ────────────── UPDATE / DELETE ──────────────
@router.patch(
    "/{id}",
    response_model=Customer,
    summary="Изменить клиента",
    responses={404: {"description": "Клиент не найден"}, 409: {"description": "Телефон занят другим клиентом"}},
)
async def update_customer(id: int, customer: CustomerUpdate, request: Request, _: User = Depends(get_staff_user)):
    try:
        return await update_customer_service(id, customer, request)
    except Exception as e:
        await request.app.state.log.log_error("customer", f"Ошибка при обновлении клиента: {str(e)}", {"id": id})
        raise


@router.delete("/{id}", response_model=Customer, summary="Переместить клиента в корзину")
async def delete_customer(id: int, request: Request, _: User = Depends(get_staff_user)):
    return await customer_trash.soft_delete(id, request)


@router.post("/{id}/restore", response_model=Customer, summary="Восстановить клиента")
async def restore_customer(id: int, request: Request, _: User = Depends(get_staff_user)):
    return await customer_trash.restore(id, request)


@router.delete(
    "/{id}/permanent",
    response_model=MessageResponse,
    summary="Удалить клиента навсегда",
    responses={409: {"description": "Клиент не в корзине"}},
)
async def permanent_delete_customer(id: int, request: Request, _: User = Depends(get_staff_user)):
    await customer_trash.permanent_delete(id, request)
    return {"detail": "고객이 영구 삭제되었습니다"}
