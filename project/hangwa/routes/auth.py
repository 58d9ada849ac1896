# hangwa/routes/auth.py

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jwt import ExpiredSignatureError, InvalidTokenError
from typing import Optional, List

from hangwa.models.user import User
from hangwa.schemas.base import MessageResponse
from hangwa.schemas.user import UserCreate, UserResponse, PasswordChange, TokenResponse, SessionResponse
from hangwa.services.profile import (
    create_user_service,
    read_user_by_username,
    authenticate_service,
    change_password_service,
)
from hangwa.services.session import (
    create_session_service,
    touch_session_service,
    read_sessions_service,
    revoke_session_service,
)
from hangwa.utils.errors import AuthenticationError, AuthorizationError
from hangwa.utils.security import create_access_token, decode_access_token

router = APIRouter()

# ────────────── JWT ──────────────
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


async def get_optional_user(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> Optional[User]:
    """
    Пользователь по токену или None, если токена нет.
    Публичные эндпоинты (оформление и поиск заказа) работают и без входа.

    **Статусы:**
    - 401 Unauthorized – токен истёк, неверный, сессия завершена или учётная запись отключена
    """
    if not token:
        return None

    log = request.app.state.log
    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        await log.log_warning("auth", "Токен истёк")
        raise AuthenticationError("세션이 만료되었습니다")
    except InvalidTokenError:
        await log.log_warning("auth", "Неверный токен")
        raise AuthenticationError("유효하지 않은 토큰입니다")

    username = payload.get("sub")
    session_id = payload.get("sid")
    if not username or not session_id:
        await log.log_error("auth", "Токен не содержит sub/sid")
        raise AuthenticationError("유효하지 않은 토큰입니다")

    user = await read_user_by_username(username, request)
    if user is None or not user.is_active:
        raise AuthenticationError("로그인이 필요합니다")

    await touch_session_service(session_id, user.id, request)
    request.state.session_id = session_id
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Обязательный вход."""
    if user is None:
        raise AuthenticationError("로그인이 필요합니다")
    return user


async def get_staff_user(user: User = Depends(get_current_user)) -> User:
    """manager или admin."""
    if not user.role_enum.is_staff:
        raise AuthorizationError("권한이 없습니다")
    return user


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if not user.role_enum.can_manage_users:
        raise AuthorizationError("관리자만 접근할 수 있습니다")
    return user


# ────────────── TOKEN ──────────────
@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Получение JWT токена (вход)",
    responses={
        200: {"description": "Токен выдан, в ответе данные пользователя"},
        401: {"description": "Неверный логин или пароль / учётная запись отключена"},
        422: {"description": "Пустой username или password"},
        500: {"description": "Внутренняя ошибка сервера"},
    },
)
async def login_for_access_token(request: Request, form_data: OAuth2PasswordRequestForm = Depends()):
    """
    Вход по логину и паролю (form-data: `username`, `password`).

    Создаёт запись user_sessions и возвращает JWT с claims `sub` (логин)
    и `sid` (идентификатор сессии). Завершённая сессия делает токен недействительным.
    """
    log = request.app.state.log
    try:
        user = await authenticate_service(form_data.username, form_data.password, request)
        session = await create_session_service(user, request)
        access_token = create_access_token(data={"sub": user.username, "sid": session.session_id})
        await log.log_info("auth", "Пользователь успешно авторизован", {"user_id": user.id, "role": user.role})
        return {"access_token": access_token, "token_type": "bearer", "user": user}
    except Exception as e:
        await log.log_error("auth", f"Ошибка при получении токена: {e}", {"username": form_data.username})
        raise


# ────────────── Регистрация ──────────────
@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Регистрация нового пользователя",
    responses={
        201: {"description": "Пользователь зарегистрирован"},
        409: {"description": "Логин уже занят"},
        422: {"description": "Ошибка валидации"},
    },
)
async def register_user(user: UserCreate, request: Request):
    """
    Регистрация покупателя. Все новые пользователи получают роль `user`.
    """
    try:
        return await create_user_service(user, request)
    except Exception as e:
        await request.app.state.log.log_error("auth", f"Ошибка регистрации: {e}", {"username": user.username})
        raise


# ────────────── Текущий пользователь ──────────────
@router.get("/user", response_model=UserResponse, summary="Текущий пользователь")
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/logout", response_model=MessageResponse, summary="Выход (завершение текущей сессии)")
async def logout(request: Request, current_user: User = Depends(get_current_user)):
    await revoke_session_service(request.state.session_id, current_user, request)
    return {"detail": "로그아웃되었습니다"}


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Смена пароля",
    responses={400: {"description": "Текущий пароль неверен"}},
)
async def change_password(body: PasswordChange, request: Request, current_user: User = Depends(get_current_user)):
    try:
        await change_password_service(current_user, body.current_password, body.new_password, request)
        return {"detail": "비밀번호가 변경되었습니다"}
    except Exception as e:
        await request.app.state.log.log_error("auth", f"Ошибка смены пароля: {e}", {"id": current_user.id})
        raise


# ────────────── Сессии ──────────────
@router.get("/sessions", response_model=List[SessionResponse], summary="Активные сессии")
async def read_sessions(request: Request, current_user: User = Depends(get_current_user)):
    """Свои сессии; администратор видит сессии всех пользователей."""
    sessions = await read_sessions_service(current_user, request)
    current_sid = getattr(request.state, "session_id", None)
    return [
        SessionResponse.model_validate(s).model_copy(update={"is_current": s.session_id == current_sid})
        for s in sessions
    ]


@router.delete(
    "/sessions/{session_id}",
    response_model=MessageResponse,
    summary="Завершить сессию",
    responses={403: {"description": "Чужая сессия"}, 404: {"description": "Сессия не найдена"}},
)
async def revoke_session(session_id: str, request: Request, current_user: User = Depends(get_current_user)):
    try:
        await revoke_session_service(session_id, current_user, request)
        return {"detail": "세션이 종료되었습니다"}
    except Exception as e:
        await request.app.state.log.log_error("auth", f"Ошибка завершения сессии: {e}", {"session_id": session_id})
        raise
