# src/core/shifts/repository.py
"""
Репозиторий смен.

Каждый запрос ограничен владельцем (tg_id) прямо в SQL: чужая смена
для репозитория неотличима от несуществующей.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any, Optional

from asyncpg import Record

from src.core.shifts.models import Shift, ShiftFilter
from src.infra.database import DatabaseManager, store_errors


class ShiftRepository(ABC):
    """Хранилище смен с уникальностью (tg_id, car_id, date)."""

    @abstractmethod
    async def upsert(
        self,
        tg_id: int,
        car_id: str,
        date: str,
        payload: dict[str, Any],
        car_name: Optional[str] = None,
        car_class: Optional[str] = None,
    ) -> Shift:
        """
        Атомарно создаёт смену или обновляет существующую с тем же ключом.
        payload заменяется целиком; car_name/car_class = None не затирают сохранённые.
        """

    @abstractmethod
    async def find(self, tg_id: int, flt: ShiftFilter) -> list[Shift]:
        """Смены владельца по фильтру, по возрастанию даты."""

    @abstractmethod
    async def get(self, tg_id: int, shift_id: str) -> Optional[Shift]:
        """Смена владельца по id."""

    @abstractmethod
    async def update(
        self,
        tg_id: int,
        shift_id: str,
        payload: Optional[dict[str, Any]] = None,
        car_name: Optional[str] = None,
        car_class: Optional[str] = None,
    ) -> Optional[Shift]:
        """Обновляет смену владельца; None-поля не трогаются."""

    @abstractmethod
    async def delete(self, tg_id: int, shift_id: str) -> bool:
        """Удаляет смену владельца. True, если строка была."""


_SHIFT_COLUMNS = "id, tg_id, car_id, car_name, car_class, date, payload, updated_at"


def _parse_id(shift_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(shift_id))
    except ValueError:
        return None


def _to_shift(record: Record) -> Shift:
    data = dict(record)
    data["id"] = str(data["id"])
    data["payload"] = data.get("payload") or {}
    return Shift(**data)


class PostgresShiftRepository(ShiftRepository):
    """Смены в PostgreSQL (таблица shifts, UNIQUE (tg_id, car_id, date))."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def upsert(
        self,
        tg_id: int,
        car_id: str,
        date: str,
        payload: dict[str, Any],
        car_name: Optional[str] = None,
        car_class: Optional[str] = None,
    ) -> Shift:
        # Гонка двух upsert по одному ключу разрешается самим ON CONFLICT
        query = f"""
            INSERT INTO shifts (id, tg_id, car_id, car_name, car_class, date, payload, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, NOW())
            ON CONFLICT (tg_id, car_id, date) DO UPDATE SET
                payload = EXCLUDED.payload,
                car_name = COALESCE(EXCLUDED.car_name, shifts.car_name),
                car_class = COALESCE(EXCLUDED.car_class, shifts.car_class),
                updated_at = NOW()
            RETURNING {_SHIFT_COLUMNS}
        """
        async with store_errors(f"upsert смены {tg_id}/{car_id}/{date}"):
            record = await self._db.fetchrow(
                query, uuid.uuid4(), tg_id, car_id, car_name, car_class, date, payload
            )
        return _to_shift(record)

    async def find(self, tg_id: int, flt: ShiftFilter) -> list[Shift]:
        conditions = ["tg_id = $1"]
        args: list[Any] = [tg_id]

        def add(condition: str, value: Any) -> None:
            args.append(value)
            conditions.append(condition.format(n=len(args)))

        if flt.date_from:
            add("date >= ${n}", flt.date_from)
        if flt.date_to:
            add("date <= ${n}", flt.date_to)
        if flt.car_id:
            add("car_id = ${n}", flt.car_id)
        if flt.updated_since:
            add("updated_at > ${n}", flt.updated_since)

        query = f"""
            SELECT {_SHIFT_COLUMNS}
            FROM shifts
            WHERE {" AND ".join(conditions)}
            ORDER BY date ASC
        """
        async with store_errors(f"список смен {tg_id}"):
            records = await self._db.fetch(query, *args)
        return [_to_shift(r) for r in records]

    async def get(self, tg_id: int, shift_id: str) -> Optional[Shift]:
        key = _parse_id(shift_id)
        if key is None:
            return None
        query = f"SELECT {_SHIFT_COLUMNS} FROM shifts WHERE id = $1 AND tg_id = $2"
        async with store_errors(f"чтение смены {shift_id}"):
            record = await self._db.fetchrow(query, key, tg_id)
        return _to_shift(record) if record else None

    async def update(
        self,
        tg_id: int,
        shift_id: str,
        payload: Optional[dict[str, Any]] = None,
        car_name: Optional[str] = None,
        car_class: Optional[str] = None,
    ) -> Optional[Shift]:
        key = _parse_id(shift_id)
        if key is None:
            return None
        query = f"""
            UPDATE shifts
            SET payload = COALESCE($3::jsonb, payload),
                car_name = COALESCE($4, car_name),
                car_class = COALESCE($5, car_class),
                updated_at = NOW()
            WHERE id = $1 AND tg_id = $2
            RETURNING {_SHIFT_COLUMNS}
        """
        async with store_errors(f"обновление смены {shift_id}"):
            record = await self._db.fetchrow(query, key, tg_id, payload, car_name, car_class)
        return _to_shift(record) if record else None

    async def delete(self, tg_id: int, shift_id: str) -> bool:
        key = _parse_id(shift_id)
        if key is None:
            return False
        query = "DELETE FROM shifts WHERE id = $1 AND tg_id = $2 RETURNING id"
        async with store_errors(f"удаление смены {shift_id}"):
            deleted = await self._db.fetchval(query, key, tg_id)
        return deleted is not None
