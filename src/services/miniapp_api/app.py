# src/services/miniapp_api/app.py
"""
FastAPI приложение MiniApp API.

Backend для Telegram Mini App учёта смен таксиста.
Все endpoints, кроме /health, требуют валидные Telegram initData.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.common.constants import StorageBackend, TypeMsg
from src.common.errors import AppError, ValidationError
from src.common.logger import log_error, log_info, log_warning
from src.config import settings
from src.shared.models.common import ErrorResponse, HealthStatus
from src.services.miniapp_api.dependencies import (
    cleanup_dependencies,
    get_database,
    init_dependencies,
)
from src.services.miniapp_api.routes import router


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения: выбор хранилища и DI."""
    backend = settings.storage.BACKEND

    if backend == StorageBackend.MEMORY:
        from src.infra.memory_store import InMemoryIdentityRepository, InMemoryShiftRepository

        await log_warning("Используется in-memory хранилище: данные не переживут перезапуск")
        init_dependencies(
            identity_repository=InMemoryIdentityRepository(),
            shift_repository=InMemoryShiftRepository(),
            bot_token=settings.telegram.BOT_TOKEN,
        )
    else:
        from src.core.shifts.repository import PostgresShiftRepository
        from src.core.users.repository import PostgresIdentityRepository
        from src.infra.database import DatabaseManager, init_db

        db = DatabaseManager()
        await init_db(db)
        init_dependencies(
            identity_repository=PostgresIdentityRepository(db),
            shift_repository=PostgresShiftRepository(db),
            bot_token=settings.telegram.BOT_TOKEN,
            db=db,
        )

    if not settings.telegram.BOT_TOKEN:
        await log_warning("BOT_TOKEN не задан: все запросы будут отклонены (no_bot_token)")

    await log_info(f"MiniApp API запущен (хранилище: {backend})", type_msg=TypeMsg.INFO)

    yield

    await cleanup_dependencies()
    await log_info("MiniApp API остановлен", type_msg=TypeMsg.INFO)


# === APP ===

app = FastAPI(
    title="TaxiPro MiniApp API",
    description="Учёт смен, комиссий, налогов и прибыли для Telegram Mini App.",
    version=settings.system.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    router,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


# === ERRORS ===

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Доменная ошибка -> {"ok": false, "error": CODE}."""
    if exc.status_code >= 500:
        await log_error(f"{request.method} {request.url.path}: {exc.code} ({exc.message})")
    else:
        await log_warning(f"{request.method} {request.url.path}: {exc.code}")
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Тело или параметры не разобрались."""
    await log_warning(f"{request.method} {request.url.path}: некорректный запрос: {exc.errors()}")
    error = ValidationError()
    return JSONResponse(error.to_dict(), status_code=error.status_code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Всё непредусмотренное -> INTERNAL_ERROR."""
    await log_error(f"{request.method} {request.url.path}: необработанная ошибка: {exc}", exc_info=True)
    error = AppError()
    return JSONResponse(error.to_dict(), status_code=error.status_code)


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса."""
    backend = settings.storage.BACKEND
    dependencies = {"storage": backend.value}
    status = "healthy"

    db = get_database()
    if db is not None:
        db_ok = await db.health_check()
        dependencies["postgres"] = "ok" if db_ok else "unavailable"
        if not db_ok:
            status = "degraded"

    return HealthStatus(
        status=status,
        service="miniapp_api",
        version=settings.system.VERSION,
        dependencies=dependencies,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.deployment.API_HOST, port=settings.deployment.API_PORT)
