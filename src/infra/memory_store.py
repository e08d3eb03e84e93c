# src/infra/memory_store.py
"""
In-memory реализации репозиториев.

Используются при STORAGE_BACKEND=memory (локальная разработка без PostgreSQL)
и в тестах. Каждая операция выполняется без await внутри, поэтому в одном
event loop она атомарна так же, как ON CONFLICT в базе.
"""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from src.core.auth.init_data import TelegramUser
from src.core.shifts.models import Shift, ShiftFilter
from src.core.shifts.repository import ShiftRepository
from src.core.users.models import Identity, Presence
from src.core.users.repository import IdentityRepository


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryIdentityRepository(IdentityRepository):
    """Пользователи и presence в словарях процесса."""

    def __init__(self) -> None:
        self._users: dict[int, Identity] = {}
        self._presence: dict[int, Presence] = {}

    async def upsert_identity(self, user: TelegramUser) -> tuple[Identity, bool]:
        now = _now()
        existing = self._users.get(user.id)
        identity = Identity(
            tg_id=user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            language_code=user.language_code,
            photo_url=user.photo_url,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._users[user.id] = identity
        return identity, existing is None

    async def get_identity(self, tg_id: int) -> Identity | None:
        return self._users.get(tg_id)

    async def touch_presence(self, tg_id: int, seen_at: datetime | None = None) -> Presence:
        presence = Presence(tg_id=tg_id, last_seen=seen_at or _now())
        self._presence[tg_id] = presence
        return presence


class InMemoryShiftRepository(ShiftRepository):
    """Смены в словаре с индексом по ключу (tg_id, car_id, date)."""

    def __init__(self) -> None:
        self._shifts: dict[str, Shift] = {}
        self._keys: dict[tuple[int, str, str], str] = {}

    async def upsert(
        self,
        tg_id: int,
        car_id: str,
        date: str,
        payload: dict[str, Any],
        car_name: Optional[str] = None,
        car_class: Optional[str] = None,
    ) -> Shift:
        key = (tg_id, car_id, date)
        shift_id = self._keys.get(key)
        existing = self._shifts.get(shift_id) if shift_id else None

        if existing is None:
            shift = Shift(
                id=str(uuid.uuid4()),
                tg_id=tg_id,
                car_id=car_id,
                car_name=car_name,
                car_class=car_class,
                date=date,
                payload=copy.deepcopy(payload),
                updated_at=_now(),
            )
            self._keys[key] = shift.id
        else:
            shift = existing.model_copy(update={
                "payload": copy.deepcopy(payload),
                "car_name": car_name if car_name is not None else existing.car_name,
                "car_class": car_class if car_class is not None else existing.car_class,
                "updated_at": _now(),
            })

        self._shifts[shift.id] = shift
        return shift.model_copy(deep=True)

    async def find(self, tg_id: int, flt: ShiftFilter) -> list[Shift]:
        found = [s for s in self._shifts.values() if s.tg_id == tg_id and flt.matches(s)]
        return [s.model_copy(deep=True) for s in sorted(found, key=lambda s: s.date)]

    def _owned(self, tg_id: int, shift_id: str) -> Optional[Shift]:
        shift = self._shifts.get(str(shift_id))
        if shift is None or shift.tg_id != tg_id:
            return None
        return shift

    async def get(self, tg_id: int, shift_id: str) -> Optional[Shift]:
        shift = self._owned(tg_id, shift_id)
        return shift.model_copy(deep=True) if shift is not None else None

    async def update(
        self,
        tg_id: int,
        shift_id: str,
        payload: Optional[dict[str, Any]] = None,
        car_name: Optional[str] = None,
        car_class: Optional[str] = None,
    ) -> Optional[Shift]:
        existing = self._owned(tg_id, shift_id)
        if existing is None:
            return None

        changes: dict[str, Any] = {"updated_at": _now()}
        if payload is not None:
            changes["payload"] = copy.deepcopy(payload)
        if car_name is not None:
            changes["car_name"] = car_name
        if car_class is not None:
            changes["car_class"] = car_class

        shift = existing.model_copy(update=changes)
        self._shifts[shift.id] = shift
        return shift.model_copy(deep=True)

    async def delete(self, tg_id: int, shift_id: str) -> bool:
        shift = self._owned(tg_id, shift_id)
        if shift is None:
            return False
        del self._shifts[shift.id]
        self._keys.pop((shift.tg_id, shift.car_id, shift.date), None)
        return True
