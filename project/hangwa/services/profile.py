# hangwa/services/profile.py

from datetime import datetime
from typing import Optional

from fastapi import Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from hangwa.models.user import User as UserModel, Role
from hangwa.schemas.user import UserCreate
from hangwa.services.session import revoke_user_sessions
from hangwa.utils.errors import ConflictError, NotFoundError, ValidationError, AuthenticationError
from hangwa.utils.security import hash_password, verify_password


async def read_users_service(request: Request, skip: int = 0, limit: int = 100) -> list[UserModel]:
    """
    Список пользователей.
    """
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(UserModel).order_by(UserModel.id).offset(skip).limit(limit))
    users = result.scalars().all()

    await log.log_info("user", f"{len(users)} пользователей загружено")
    return users


async def read_user_service(id: int, request: Request) -> UserModel:
    """
    Чтение пользователя по ID.
    """
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(UserModel).where(UserModel.id == id))
    user = result.scalar_one_or_none()
    if user is None:
        await log.log_error("user", "Пользователь не найден", {"id": id})
        raise NotFoundError("사용자를 찾을 수 없습니다")
    return user


async def read_user_by_username(username: str, request: Request) -> Optional[UserModel]:
    result = await request.state.db.execute(select(UserModel).where(UserModel.username == username))
    return result.scalar_one_or_none()


async def create_user_service(data: UserCreate, request: Request) -> UserModel:
    """
    Регистрация. Роль всегда user, пароль хранится только в виде хэша.
    """
    db = request.state.db
    log = request.app.state.log

    if await read_user_by_username(data.username, request) is not None:
        raise ConflictError(f"'{data.username}' 아이디는 이미 사용 중입니다", field="username")

    user = UserModel(
        username=data.username,
        password_hash=hash_password(data.password),
        name=data.name,
        phone_number=data.phone_number,
        role=Role.user.value,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"'{data.username}' 아이디는 이미 사용 중입니다", field="username")
    await db.refresh(user)

    await log.log_info("user", "Пользователь зарегистрирован", {"id": user.id, "username": user.username})
    return user


async def authenticate_service(username: str, password: str, request: Request) -> UserModel:
    """Проверка логина и пароля; при успехе обновляет last_login_at."""
    db = request.state.db
    log = request.app.state.log

    user = await read_user_by_username(username, request)
    if user is None or not verify_password(password, user.password_hash):
        await log.log_warning("auth", "Неудачная попытка входа", {"username": username})
        raise AuthenticationError("아이디나 비밀번호가 틀렸습니다")
    if not user.is_active:
        await log.log_warning("auth", "Вход в отключённую учётную запись", {"username": username})
        raise AuthenticationError("비활성화된 계정입니다")

    user.last_login_at = datetime.now()
    await db.commit()
    await db.refresh(user)
    return user


async def update_role_service(id: int, role: Role, current_user: UserModel, request: Request) -> UserModel:
    db = request.state.db
    log = request.app.state.log

    user = await read_user_service(id, request)
    if user.id == current_user.id and role != user.role_enum:
        raise ValidationError("자신의 권한은 변경할 수 없습니다", field="role")
    if user.role == role.value:
        return user

    previous = user.role
    user.role = role.value
    await db.commit()
    await db.refresh(user)
    # права в активных токенах больше не соответствуют роли
    await revoke_user_sessions(user.id, request)

    await log.log_info("user", "Роль изменена", {"id": id, "from": previous, "to": role.value, "by": current_user.id})
    return user


async def set_active_service(id: int, is_active: bool, current_user: UserModel, request: Request) -> UserModel:
    db = request.state.db
    log = request.app.state.log

    user = await read_user_service(id, request)
    if user.id == current_user.id and not is_active:
        raise ValidationError("자신의 계정은 비활성화할 수 없습니다", field="isActive")

    user.is_active = is_active
    await db.commit()
    await db.refresh(user)
    if not is_active:
        await revoke_user_sessions(user.id, request)

    await log.log_info("user", "Активность пользователя изменена", {"id": id, "is_active": is_active})
    return user


async def change_password_service(user: UserModel, current_password: str, new_password: str,
                                  request: Request) -> None:
    db = request.state.db
    log = request.app.state.log

    if not verify_password(current_password, user.password_hash):
        raise ValidationError("현재 비밀번호가 올바르지 않습니다", field="currentPassword")

    user.password_hash = hash_password(new_password)
    await db.commit()
    await log.log_info("user", "Пароль изменён", {"id": user.id})
