# src/core/shifts/models.py
"""
Модели смен.

Payload смены хранится как есть (открытый словарь от клиента). ShiftPayload —
типизированное чтение этого словаря для расчётов: числа приводятся к float,
мусор превращается в 0, неизвестные ключи сохраняются в model_extra.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.shared.models.common import ApiModel
from src.shared.models.enums import ParkMode, TaxMode


def to_number(value: Any) -> float:
    """Число из произвольного значения; пусто, не число, NaN, inf -> 0."""
    number = to_optional_number(value)
    return 0.0 if number is None else number


def to_optional_number(value: Any) -> Optional[float]:
    """Как to_number, но «не задано» возвращается как None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except (ValueError, OverflowError):
            return None
    else:
        return None
    return number if math.isfinite(number) else None


class _PayloadModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ParkSettings(_PayloadModel):
    """settings.park — комиссия парка."""
    mode: Optional[ParkMode] = None
    day_fee: float = 0.0
    order_fee: float = 0.0
    percent: float = 0.0

    @field_validator("mode", mode="before")
    @classmethod
    def parse_mode(cls, v: Any) -> Optional[ParkMode]:
        try:
            return ParkMode(v)
        except (ValueError, TypeError):
            return None

    @field_validator("day_fee", "order_fee", "percent", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> float:
        return to_number(v)


class ShiftSettings(_PayloadModel):
    """settings — настройки, с которыми смена была внесена."""
    park: ParkSettings = Field(default_factory=ParkSettings)
    tax_mode: Optional[TaxMode] = None

    @field_validator("park", mode="before")
    @classmethod
    def parse_park(cls, v: Any) -> Any:
        if isinstance(v, (ParkSettings, Mapping)):
            return v
        return {}

    @field_validator("tax_mode", mode="before")
    @classmethod
    def parse_tax_mode(cls, v: Any) -> Optional[TaxMode]:
        try:
            return TaxMode(v)
        except (ValueError, TypeError):
            return None


class ShiftPayload(_PayloadModel):
    """Бизнес-поля смены."""
    income: float = 0.0
    tips: float = 0.0
    other_income: float = 0.0
    orders: float = 0.0
    rent: float = 0.0
    fuel: float = 0.0
    other_expense: float = 0.0
    fines: float = 0.0
    commission_manual: Optional[float] = None
    tax_manual: Optional[float] = None
    settings: ShiftSettings = Field(default_factory=ShiftSettings)

    @field_validator(
        "income", "tips", "other_income", "orders",
        "rent", "fuel", "other_expense", "fines",
        mode="before",
    )
    @classmethod
    def coerce_number(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("commission_manual", "tax_manual", mode="before")
    @classmethod
    def coerce_optional(cls, v: Any) -> Optional[float]:
        return to_optional_number(v)

    @field_validator("settings", mode="before")
    @classmethod
    def parse_settings(cls, v: Any) -> Any:
        if isinstance(v, (ShiftSettings, Mapping)):
            return v
        return {}

    @classmethod
    def parse(cls, raw: Any) -> "ShiftPayload":
        """Payload из того, что прислал клиент. Никогда не бросает исключений."""
        if isinstance(raw, ShiftPayload):
            return raw
        if not isinstance(raw, Mapping):
            return cls()
        return cls.model_validate(dict(raw))


class Shift(ApiModel):
    """Смена: учёт одного автомобиля за один день одного пользователя."""

    id: str
    tg_id: int
    car_id: str
    car_name: Optional[str] = None
    car_class: Optional[str] = None
    date: str = Field(..., description="YYYY-MM-DD")
    payload: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime


class ShiftFilter(BaseModel):
    """Фильтр списка смен."""

    date_from: Optional[str] = None
    date_to: Optional[str] = None
    car_id: Optional[str] = None
    updated_since: Optional[datetime] = None

    @classmethod
    def build(
        cls,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        car_id: Optional[str] = None,
        updated_since: Optional[str] = None,
    ) -> "ShiftFilter":
        """Фильтр из query-параметров; нераспознанный updatedSince игнорируется."""
        return cls(
            date_from=date_from or None,
            date_to=date_to or None,
            car_id=car_id or None,
            updated_since=parse_timestamp(updated_since),
        )

    def matches(self, shift: Shift) -> bool:
        """Подходит ли смена под фильтр (владелец проверяется отдельно)."""
        if self.date_from and shift.date < self.date_from:
            return False
        if self.date_to and shift.date > self.date_to:
            return False
        if self.car_id and shift.car_id != self.car_id:
            return False
        if self.updated_since and not shift.updated_at > self.updated_since:
            return False
        return True


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 (в т.ч. с суффиксом Z) или unix-время в миллисекундах.
    Наивное время считается UTC. Мусор -> None.
    """
    if not value:
        return None
    text = value.strip()
    if text.isdigit():
        try:
            return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ShiftPatch(ApiModel):
    """Изменение смены по id. car_id и date через него не меняются."""

    payload: Optional[dict[str, Any]] = None
    car_name: Optional[str] = None
    car_class: Optional[str] = None


class BulkItemResult(ApiModel):
    """Результат одного элемента пакетной записи."""

    idx: int
    ok: bool
    id: Optional[str] = None
    car_id: Optional[str] = None
    date: Optional[str] = None
    updated_at: Optional[datetime] = None
    error: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
