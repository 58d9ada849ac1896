# hangwa/utils/database.py

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.future import select
from sqlalchemy.pool import NullPool
from hangwa.config import settings
from hangwa.utils.security import hash_password

# ────────────── Base для моделей ──────────────
Base = declarative_base()  # базовый класс для всех моделей SQLAlchemy

# ────────────── URL базы данных ──────────────
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# ────────────── Асинхронный движок ──────────────
# sqlite: отдельное соединение на каждую сессию, пул не держим
engine_kwargs = {"poolclass": NullPool} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}
engine = create_async_engine(
    SQLALCHEMY_DATABASE_URL,
    echo=settings.LOG_PRINT_DB == "1",
    **engine_kwargs,
)

# ────────────── Асинхронная сессия ──────────────
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ────────────── Инициализация базы данных ──────────────
async def init_db():
    """
    Создаёт все таблицы (если ещё не созданы) и заполняет значения по умолчанию:
        • настройки цен, себестоимости и доставки
        • строку admin_settings (имя отправителя SMS)
        • учётные записи администратора и менеджера из .env
    Повторный запуск ничего не перезаписывает.
    """
    from hangwa.models import order, customer, sms, session  # noqa: F401 - регистрация таблиц
    from hangwa.models.settings import Setting, AdminSettings, DEFAULT_SETTINGS
    from hangwa.models.user import User, Role

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(Setting.key))
        existing_keys = set(result.scalars().all())
        for key, (value, description) in DEFAULT_SETTINGS.items():
            if key not in existing_keys:
                session.add(Setting(key=key, value=str(value), description=description))

        result = await session.execute(select(AdminSettings).limit(1))
        if result.scalar_one_or_none() is None:
            session.add(AdminSettings(
                admin_name="에덴한과",
                admin_phone="010-0000-0000",
                business_name="에덴한과",
            ))

        seed_accounts = [
            (settings.AUTH_ADMIN_LOGIN, settings.AUTH_ADMIN_PASSWORD, "관리자", Role.admin),
            (settings.AUTH_MANAGER_LOGIN, settings.AUTH_MANAGER_PASSWORD, "매니저", Role.manager),
        ]
        for login, password, name, role in seed_accounts:
            result = await session.execute(select(User).where(User.username == login))
            if result.scalar_one_or_none() is None:
                session.add(User(
                    username=login,
                    password_hash=hash_password(password),
                    name=name,
                    role=role.value,
                ))

        await session.commit()


async def drop_db():
    """Удаляет все таблицы (используется в тестах)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
