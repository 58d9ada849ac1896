# hangwa/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    AUTH_SECRET_KEY: str
    AUTH_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    AUTH_ADMIN_LOGIN: str = "admin"
    AUTH_ADMIN_PASSWORD: str = "eden2024!"
    AUTH_MANAGER_LOGIN: str = "manager"
    AUTH_MANAGER_PASSWORD: str = "eden2024!"

    DATABASE_URL: str = "sqlite+aiosqlite:///./hangwa.db"   # URL базы

    SMS_ENABLED: bool = True        # False - отправка отклоняется, попытка пишется как failed

    LOG_DIR: str = "log"
    LOG_PRINT: str = "1"
    LOG_PRINT_DB: str = "0"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
