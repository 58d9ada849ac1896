# hangwa/routes/users.py

from fastapi import APIRouter, Depends, Request

from hangwa.models.user import User
from hangwa.schemas.user import UserResponse, RoleUpdate, ActiveUpdate
from hangwa.services.profile import read_users_service, update_role_service, set_active_service
from hangwa.routes.auth import get_admin_user

router = APIRouter()


@router.get(
    "",
    response_model=list[UserResponse],
    summary="Список пользователей (администратор)",
    responses={401: {"description": "Нет токена"}, 403: {"description": "Не администратор"}},
)
async def read_users(request: Request, skip: int = 0, limit: int = 100, _: User = Depends(get_admin_user)):
    try:
        return await read_users_service(request, skip, limit)
    except Exception as e:
        await request.app.state.log.log_error("user", f"Ошибка при получении пользователей: {str(e)}")
        raise


@router.patch(
    "/{id}/role",
    response_model=UserResponse,
    summary="Изменить роль пользователя",
    responses={
        400: {"description": "Попытка изменить собственную роль"},
        403: {"description": "Не администратор"},
        404: {"description": "Пользователь не найден"},
    },
)
async def update_role(id: int, body: RoleUpdate, request: Request, current_user: User = Depends(get_admin_user)):
    """
    Меняет роль. Активные сессии пользователя завершаются, ему нужно войти заново.
    """
    try:
        return await update_role_service(id, body.role, current_user, request)
    except Exception as e:
        await request.app.state.log.log_error("user", f"Ошибка смены роли: {str(e)}", {"id": id})
        raise


@router.patch(
    "/{id}/active",
    response_model=UserResponse,
    summary="Включить или отключить учётную запись",
    responses={400: {"description": "Попытка отключить себя"}, 404: {"description": "Пользователь не найден"}},
)
async def update_active(id: int, body: ActiveUpdate, request: Request, current_user: User = Depends(get_admin_user)):
    try:
        return await set_active_service(id, body.is_active, current_user, request)
    except Exception as e:
        await request.app.state.log.log_error("user", f"Ошибка изменения активности: {str(e)}", {"id": id})
        raise
