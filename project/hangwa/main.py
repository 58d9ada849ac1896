# hangwa/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from dotenv import load_dotenv
from contextlib import asynccontextmanager

from hangwa.utils.log import Log
from hangwa.utils.database import init_db
from hangwa.utils.errors import ShopError, AuthenticationError
from hangwa.middleware.db_middleware import DBSessionMiddleware
from hangwa.services.sms import LogDispatcher

import os
import multiprocessing

# --- загрузка переменных окружения ---
load_dotenv()

# --- sync логгер для раннего старта ---
boot_log = Log()
if os.environ.get("RUN_MAIN") == "true" or multiprocessing.current_process().name == "MainProcess":
    boot_log.log_info_sync(target="startup", message="Импорты main.py выполнены")

# ────────────── Lifespan ──────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    boot_log.log_info_sync(target="startup", message="lifespan: startup начат")

    # Таблицы, цены по умолчанию, учётные записи admin/manager
    await init_db()
    boot_log.log_info_sync(target="startup", message="База инициализирована")

    app.state.log = Log()
    await app.state.log.log_info(target="startup", message="Async Log инициализирован")

    # тесты подменяют dispatcher, чтобы проверить сбой доставки
    app.state.sms_dispatcher = LogDispatcher(app.state.log)

    yield

    # shutdown
    await app.state.log.log_info(target="shutdown", message="Остановка приложения")
    await app.state.log.shutdown()
    boot_log.log_info_sync(target="shutdown", message="Log корректно завершён")

# ────────────── Создаём FastAPI приложение ──────────────
app = FastAPI(title="Hangwa Shop API", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# DB middleware для request.state.db
app.add_middleware(DBSessionMiddleware)

# ────────────── Ошибки предметной области ──────────────
@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

@app.get("/")
def read_root():
    return {"message": "에덴한과 주문 관리 API"}

# ────────────── Подключение роутов ──────────────
from hangwa.routes import auth, users, order, customer, settings, sms

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(order.router, prefix="/api/orders", tags=["orders"])
app.include_router(order.my_router, prefix="/api/my-orders", tags=["orders"])
app.include_router(customer.router, prefix="/api/customers", tags=["customers"])
app.include_router(settings.router, prefix="/api/settings", tags=["settings"])
app.include_router(settings.admin_router, prefix="/api/admin-settings", tags=["settings"])
app.include_router(sms.router, prefix="/api/sms", tags=["sms"])

# ────────────── Запуск uvicorn ──────────────
if __name__ == "__main__":
    boot_log.log_info_sync(target="startup", message="Запуск uvicorn.run")
    uvicorn.run(
        "hangwa.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
        reload=True
    )
