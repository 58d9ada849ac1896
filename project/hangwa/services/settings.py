# hangwa/services/settings.py

from datetime import datetime
from sqlalchemy.future import select
from fastapi import Request

from hangwa.models.settings import Setting as SettingModel, AdminSettings as AdminSettingsModel, DEFAULT_SETTINGS
from hangwa.schemas.settings import SettingUpdate, AdminSettingsUpdate
from hangwa.services.pricing import PriceTable
from hangwa.utils.errors import ValidationError, NotFoundError


async def read_settings_service(request: Request) -> list[SettingModel]:
    db = request.state.db
    result = await db.execute(select(SettingModel).order_by(SettingModel.key))
    return result.scalars().all()


async def read_price_table(request: Request) -> PriceTable:
    """Текущие цены, себестоимость и условия доставки."""
    settings = await read_settings_service(request)
    return PriceTable.from_settings({s.key: s.value for s in settings})


async def set_setting_service(data: SettingUpdate, request: Request) -> SettingModel:
    """
    Создаёт или обновляет настройку.
    Ключи цен/доставки должны быть неотрицательными целыми числами.
    """
    db = request.state.db
    log = request.app.state.log

    if data.key in DEFAULT_SETTINGS:
        try:
            numeric = int(data.value)
        except ValueError:
            raise ValidationError(f"'{data.key}' 값은 숫자여야 합니다", field="value")
        if numeric < 0:
            raise ValidationError(f"'{data.key}' 값은 0 이상이어야 합니다", field="value")
        if data.key == "freeShippingThreshold" and numeric < 1:
            raise ValidationError("무료배송 최소 수량은 1 이상이어야 합니다", field="value")

    result = await db.execute(select(SettingModel).where(SettingModel.key == data.key))
    setting = result.scalar_one_or_none()
    if setting is None:
        setting = SettingModel(key=data.key, value=data.value, description=data.description)
        db.add(setting)
    else:
        setting.value = data.value
        if data.description is not None:
            setting.description = data.description
        setting.updated_at = datetime.now()

    await db.commit()
    await db.refresh(setting)
    await log.log_info("settings", "Настройка сохранена", {"key": data.key, "value": data.value})
    return setting


async def read_admin_settings_service(request: Request) -> AdminSettingsModel:
    db = request.state.db
    result = await db.execute(select(AdminSettingsModel).order_by(AdminSettingsModel.id).limit(1))
    admin_settings = result.scalar_one_or_none()
    if admin_settings is None:
        raise NotFoundError("관리자 설정이 없습니다")
    return admin_settings


async def update_admin_settings_service(data: AdminSettingsUpdate, request: Request) -> AdminSettingsModel:
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(AdminSettingsModel).order_by(AdminSettingsModel.id).limit(1))
    admin_settings = result.scalar_one_or_none()
    if admin_settings is None:
        admin_settings = AdminSettingsModel(**data.model_dump())
        db.add(admin_settings)
    else:
        for key, value in data.model_dump().items():
            setattr(admin_settings, key, value)
        admin_settings.updated_at = datetime.now()

    await db.commit()
    await db.refresh(admin_settings)
    await log.log_info("settings", "Настройки администратора обновлены", {"business_name": admin_settings.business_name})
    return admin_settings
