# src/core/users/repository.py
"""
Репозиторий пользователей и присутствия.
Интерфейс + реализация на PostgreSQL; in-memory реализация в src/infra/memory_store.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone

from src.common.logger import log_debug
from src.core.auth.init_data import TelegramUser
from src.core.users.models import Identity, Presence
from src.infra.database import DatabaseManager, store_errors


class IdentityRepository(ABC):
    """Хранилище Identity/Presence."""

    @abstractmethod
    async def upsert_identity(self, user: TelegramUser) -> tuple[Identity, bool]:
        """
        Создаёт или обновляет пользователя по Telegram ID.

        Returns:
            (пользователь, создан ли он этим вызовом)
        """

    @abstractmethod
    async def get_identity(self, tg_id: int) -> Identity | None:
        """Пользователь по Telegram ID."""

    @abstractmethod
    async def touch_presence(self, tg_id: int, seen_at: datetime | None = None) -> Presence:
        """Обновляет last_seen (одна запись на пользователя)."""


_IDENTITY_COLUMNS = "tg_id, username, first_name, last_name, language_code, photo_url, created_at, updated_at"


class PostgresIdentityRepository(IdentityRepository):
    """Пользователи и присутствие в PostgreSQL."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def upsert_identity(self, user: TelegramUser) -> tuple[Identity, bool]:
        # xmax = 0 только у строки, вставленной этим запросом
        query = f"""
            INSERT INTO users (tg_id, username, first_name, last_name, language_code, photo_url)
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT (tg_id) DO UPDATE SET
                username = EXCLUDED.username,
                first_name = EXCLUDED.first_name,
                last_name = EXCLUDED.last_name,
                language_code = EXCLUDED.language_code,
                photo_url = EXCLUDED.photo_url,
                updated_at = NOW()
            RETURNING {_IDENTITY_COLUMNS}, (xmax = 0) AS inserted
        """
        async with store_errors(f"upsert пользователя {user.id}"):
            record = await self._db.fetchrow(
                query,
                user.id,
                user.username,
                user.first_name,
                user.last_name,
                user.language_code,
                user.photo_url,
            )

        data = dict(record)
        created = bool(data.pop("inserted", False))
        await log_debug(f"Пользователь {user.id} {'создан' if created else 'обновлён'}")
        return Identity(**data), created

    async def get_identity(self, tg_id: int) -> Identity | None:
        query = f"SELECT {_IDENTITY_COLUMNS} FROM users WHERE tg_id = $1"
        async with store_errors(f"чтение пользователя {tg_id}"):
            record = await self._db.fetchrow(query, tg_id)
        return Identity(**dict(record)) if record else None

    async def touch_presence(self, tg_id: int, seen_at: datetime | None = None) -> Presence:
        seen_at = seen_at or datetime.now(timezone.utc)
        query = """
            INSERT INTO presence (tg_id, last_seen)
            VALUES ($1, $2)
            ON CONFLICT (tg_id) DO UPDATE SET last_seen = EXCLUDED.last_seen
            RETURNING tg_id, last_seen
        """
        async with store_errors(f"presence {tg_id}"):
            record = await self._db.fetchrow(query, tg_id, seen_at)
        return Presence(**dict(record))
