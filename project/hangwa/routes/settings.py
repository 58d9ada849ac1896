# hangwa/routes/settings.py

from fastapi import APIRouter, Depends, Request
from typing import List

from hangwa.models.user import User
from hangwa.schemas.settings import Setting, SettingUpdate, AdminSettings, AdminSettingsUpdate
from hangwa.services.settings import (
    read_settings_service,
    set_setting_service,
    read_admin_settings_service,
    update_admin_settings_service,
)
from hangwa.routes.auth import get_staff_user, get_admin_user

router = APIRouter()
admin_router = APIRouter()


# ────────────── Цены и доставка ──────────────
@router.get("", response_model=List[Setting], summary="Цены, себестоимость и условия доставки")
async def read_settings(request: Request):
    """Открыто без входа: форма заказа показывает цены и порог бесплатной доставки."""
    return await read_settings_service(request)


@router.post(
    "",
    response_model=Setting,
    summary="Сохранить настройку",
    responses={
        400: {"description": "Значение цены или доставки не является целым числом >= 0"},
        403: {"description": "Не персонал"},
    },
)
async def save_setting(body: SettingUpdate, request: Request, _: User = Depends(get_staff_user)):
    """
    Новое значение действует только для заказов, созданных или изменённых после сохранения.
    """
    try:
        return await set_setting_service(body, request)
    except Exception as e:
        await request.app.state.log.log_error("settings", f"Ошибка сохранения настройки: {str(e)}", {"key": body.key})
        raise


# ────────────── Реквизиты магазина ──────────────
@admin_router.get(
    "",
    response_model=AdminSettings,
    summary="Реквизиты магазина",
    responses={404: {"description": "Реквизиты ещё не заполнены"}},
)
async def read_admin_settings(request: Request, _: User = Depends(get_staff_user)):
    return await read_admin_settings_service(request)


@admin_router.post("", response_model=AdminSettings, summary="Сохранить реквизиты магазина")
async def save_admin_settings(body: AdminSettingsUpdate, request: Request, _: User = Depends(get_admin_user)):
    try:
        return await update_admin_settings_service(body, request)
    except Exception as e:
        await request.app.state.log.log_error("settings", f"Ошибка сохранения реквизитов: {str(e)}")
        raise
