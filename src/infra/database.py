# src/infra/database.py
"""
Менеджер базы данных PostgreSQL.
Пул соединений asyncpg, retry при обрыве соединения, транзакции, применение схемы.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, AsyncGenerator, Callable, TypeVar

import asyncpg
from asyncpg import Connection, Pool, Record

from src.common.logger import log_error, log_info, log_warning
from src.common.constants import TypeMsg
from src.common.errors import StoreError

T = TypeVar("T")

# Произвольный ключ advisory lock для миграций
SCHEMA_LOCK_KEY = 730_418_221


def _retry_policy(max_attempts: int | None, delay: float | None) -> tuple[int, float]:
    """Явные значения декоратора или DB_RETRY_ATTEMPTS / DB_RETRY_DELAY из настроек."""
    if max_attempts is not None and delay is not None:
        return max_attempts, delay
    from src.config import settings

    return (
        max_attempts if max_attempts is not None else max(1, settings.database.DB_RETRY_ATTEMPTS),
        delay if delay is not None else settings.database.DB_RETRY_DELAY,
    )


def retry_on_connection_error(
    max_attempts: int | None = None,
    delay: float | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Декоратор для автоматического ретрая при ошибках подключения.
    Ошибки самих запросов (нарушение ограничений, синтаксис) не ретраятся.

    Args:
        max_attempts: Максимальное количество попыток (по умолчанию DB_RETRY_ATTEMPTS)
        delay: Базовая задержка между попытками в секундах, растёт линейно
            (по умолчанию DB_RETRY_DELAY)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempts, pause = _retry_policy(max_attempts, delay)
            last_error: Exception | None = None

            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except (
                    asyncpg.PostgresConnectionError,
                    asyncpg.InterfaceError,
                    ConnectionRefusedError,
                    OSError,
                ) as e:
                    last_error = e
                    if attempt < attempts:
                        await log_warning(f"Ошибка подключения к БД (попытка {attempt}/{attempts}): {e}")
                        await asyncio.sleep(pause * attempt)
                    else:
                        await log_error(f"Не удалось подключиться к БД после {attempts} попыток: {e}")

            raise last_error  # type: ignore

        return wrapper  # type: ignore

    return decorator


async def _init_connection(conn: Connection) -> None:
    """JSONB <-> dict на уровне драйвера."""
    await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


class DatabaseManager:
    """
    Менеджер подключений к PostgreSQL.
    Один экземпляр на процесс, передаётся в репозитории через конструктор.
    """

    def __init__(self) -> None:
        self._pool: Pool | None = None

    @property
    def pool(self) -> Pool:
        """Возвращает пул соединений."""
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @retry_on_connection_error()
    async def connect(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: int = 30,
    ) -> None:
        """
        Создаёт пул соединений к PostgreSQL.

        Args:
            dsn: DSN строка подключения
            min_size: Минимальный размер пула
            max_size: Максимальный размер пула
            command_timeout: Таймаут команд (секунды)
        """
        if self._pool is not None:
            return

        await log_info("Подключение к PostgreSQL...", type_msg=TypeMsg.INFO)
        self._pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
            init=_init_connection,
        )
        await log_info("Подключение к PostgreSQL установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает пул соединений."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            await log_info("Соединение с PostgreSQL закрыто", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[Connection, None]:
        """
        Соединение из пула.

        Example:
            async with db.acquire() as conn:
                rows = await conn.fetch("SELECT * FROM shifts WHERE tg_id = $1", tg_id)
        """
        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """Соединение внутри транзакции: commit при успехе, rollback при ошибке."""
        async with self.pool.acquire() as connection:
            async with connection.transaction():
                yield connection

    @retry_on_connection_error()
    async def execute(self, query: str, *args: Any) -> str:
        """Выполняет SQL без возврата строк, возвращает статус команды."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    @retry_on_connection_error()
    async def fetch(self, query: str, *args: Any) -> list[Record]:
        """Выполняет SQL и возвращает все строки."""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    @retry_on_connection_error()
    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        """Выполняет SQL и возвращает одну строку или None."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    @retry_on_connection_error()
    async def fetchval(self, query: str, *args: Any, column: int = 0) -> Any:
        """Выполняет SQL и возвращает одно значение."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args, column=column)

    async def health_check(self) -> bool:
        """
        Проверяет здоровье подключения к БД.

        Returns:
            True если SELECT 1 прошёл
        """
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            await log_error(f"Health check PostgreSQL failed: {e}")
            return False

    async def apply_schema(self, schema_sql: str) -> None:
        """
        Применяет схему под advisory lock, чтобы параллельно стартующие
        процессы не гоняли миграцию одновременно.
        """
        async with self.transaction() as conn:
            await conn.execute("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_KEY)
            await conn.execute(schema_sql)


async def init_db(db: DatabaseManager) -> None:
    """Подключается к БД по настройкам и применяет migrations/init.sql."""
    from src.config import settings
    from src.config.loader import get_project_root

    conf = settings.database
    await db.connect(
        dsn=conf.dsn,
        min_size=conf.DB_MIN_POOL_SIZE,
        max_size=conf.DB_MAX_POOL_SIZE,
        command_timeout=conf.DB_COMMAND_TIMEOUT,
    )
    await log_info(f"PostgreSQL подключён: {conf.DB_HOST}:{conf.DB_PORT}/{conf.DB_NAME}", type_msg=TypeMsg.INFO)

    schema_path = get_project_root() / "migrations" / "init.sql"
    if not schema_path.exists():
        await log_error(f"Файл схемы БД не найден: {schema_path}")
        return

    schema_sql = schema_path.read_text(encoding="utf-8")
    await log_info("Применение схемы БД...", type_msg=TypeMsg.INFO)
    await db.apply_schema(schema_sql)
    await log_info("Схема БД успешно применена", type_msg=TypeMsg.INFO)


@asynccontextmanager
async def store_errors(action: str) -> AsyncGenerator[None, None]:
    """
    Переводит сбои драйвера в StoreError.

    Example:
        async with store_errors("upsert смены"):
            row = await db.fetchrow(...)
    """
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RuntimeError) as e:
        await log_error(f"Ошибка БД ({action}): {e}")
        raise StoreError(message=f"{action}: {e}") from e
