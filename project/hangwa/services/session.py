# hangwa/services/session.py

from datetime import datetime, timedelta

from fastapi import Request
from sqlalchemy import update
from sqlalchemy.future import select

from hangwa.config import settings
from hangwa.models.session import UserSession as SessionModel
from hangwa.models.user import User
from hangwa.utils.errors import AuthenticationError, AuthorizationError, NotFoundError
from hangwa.utils.security import new_session_id


async def create_session_service(user: User, request: Request) -> SessionModel:
    """Новая сессия входа; её session_id уходит в токен как claim sid."""
    db = request.state.db
    now = datetime.now()

    session = SessionModel(
        session_id=new_session_id(),
        user_id=user.id,
        ip_address=request.client.host if request.client else "",
        user_agent=request.headers.get("user-agent", ""),
        last_activity=now,
        created_at=now,
        expires_at=now + timedelta(minutes=settings.AUTH_TOKEN_EXPIRE_MINUTES),
    )
    db.add(session)
    await db.commit()
    await db.refresh(session)
    return session


async def touch_session_service(session_id: str, user_id: int, request: Request) -> SessionModel:
    """
    Проверяет, что сессия активна и не истекла, и отмечает активность.
    """
    db = request.state.db

    result = await db.execute(select(SessionModel).where(SessionModel.session_id == session_id))
    session = result.scalar_one_or_none()
    now = datetime.now()
    if session is None or session.user_id != user_id or not session.is_active:
        raise AuthenticationError("로그인이 필요합니다")
    if session.expires_at <= now:
        session.is_active = False
        await db.commit()
        raise AuthenticationError("세션이 만료되었습니다")

    session.last_activity = now
    await db.commit()
    return session


async def read_sessions_service(user: User, request: Request) -> list[SessionModel]:
    """Активные сессии: свои - для всех, все - для администратора."""
    db = request.state.db
    query = select(SessionModel).where(SessionModel.is_active.is_(True))
    if not user.role_enum.can_manage_users:
        query = query.where(SessionModel.user_id == user.id)
    result = await db.execute(query.order_by(SessionModel.last_activity.desc()))
    return result.scalars().all()


async def revoke_session_service(session_id: str, user: User, request: Request) -> None:
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(SessionModel).where(SessionModel.session_id == session_id))
    session = result.scalar_one_or_none()
    if session is None:
        raise NotFoundError("세션을 찾을 수 없습니다")
    if session.user_id != user.id and not user.role_enum.can_manage_users:
        raise AuthorizationError("권한이 없습니다")

    session.is_active = False
    await db.commit()
    await log.log_info("auth", "Сессия завершена", {"session_id": session_id, "by": user.id})


async def revoke_user_sessions(user_id: int, request: Request) -> None:
    db = request.state.db
    await db.execute(
        update(SessionModel)
        .where(SessionModel.user_id == user_id, SessionModel.is_active.is_(True))
        .values(is_active=False)
    )
    await db.commit()
