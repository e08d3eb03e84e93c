#!/usr/bin/env python3
# main.py
"""
Главная точка входа TaxiPro API.
Запускает HTTP API Mini App или применяет схему БД в зависимости от аргументов.
"""

from __future__ import annotations

import asyncio
import sys

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import StorageBackend, TypeMsg


async def apply_schema() -> bool:
    """Подключается к PostgreSQL и применяет migrations/init.sql."""
    from src.infra.database import DatabaseManager, init_db

    if settings.storage.BACKEND != StorageBackend.POSTGRES:
        await log_error("--init-db требует STORAGE_BACKEND=postgres")
        return False

    db = DatabaseManager()
    try:
        await init_db(db)
        return True
    except Exception as e:
        await log_error(f"Не удалось применить схему БД: {e}", exc_info=True)
        return False
    finally:
        await db.disconnect()


async def run_api() -> None:
    """Запускает MiniApp API."""
    import uvicorn

    await log_info(
        f"Запуск MiniApp API на {settings.deployment.API_HOST}:{settings.deployment.API_PORT} "
        f"(окружение: {settings.system.ENVIRONMENT})",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.miniapp_api.app:app",
        host=settings.deployment.API_HOST,
        port=settings.deployment.API_PORT,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    # SIGINT/SIGTERM обрабатывает сам uvicorn
    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("MiniApp API: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def main(mode: str) -> int:
    """
    Главная функция запуска.

    Args:
        mode: serve или init_db

    Returns:
        Код возврата процесса
    """
    setup_logging()

    if mode == "init_db":
        return 0 if await apply_schema() else 1

    await run_api()
    return 0


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
TaxiPro API — backend Telegram Mini App учёта смен таксиста

Использование:
    python main.py             — запустить HTTP API
    python main.py --init-db   — применить migrations/init.sql и выйти
    python main.py --help      — эта справка

Окружение:
    BOT_TOKEN                  — токен бота (проверка initData)
    PORT / API_HOST            — адрес HTTP API
    STORAGE_BACKEND            — postgres | memory
    DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD
""")


if __name__ == "__main__":
    mode = "serve"

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg == "--init-db":
            mode = "init_db"
        else:
            print(f"Ошибка: неизвестный аргумент '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        sys.exit(asyncio.run(main(mode)))
    except KeyboardInterrupt:
        pass
