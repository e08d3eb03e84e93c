# src/services/miniapp_api/schemas.py
"""
Тела запросов MiniApp API.

Поля намеренно нестрогие: обязательность carId/date и форма payload
проверяются в ShiftLedger, чтобы клиент получал доменные коды ошибок.
"""

from __future__ import annotations

from typing import Any, Optional

from src.shared.models.common import ApiModel


class AuthRequest(ApiModel):
    """Вход через Mini App (initData может прийти и в заголовке)."""
    init_data: Optional[str] = None


class PingRequest(ApiModel):
    """Пинг при открытии экрана."""
    init_data: Optional[str] = None
    screen: Optional[str] = None


class ShiftUpsertRequest(ApiModel):
    """Запись одной смены."""
    init_data: Optional[str] = None
    car_id: Any = None
    date: Any = None
    car_name: Any = None
    car_class: Any = None
    payload: Optional[dict[str, Any]] = None


class BulkUpsertRequest(ApiModel):
    """Пакет смен из офлайн-очереди клиента."""
    init_data: Optional[str] = None
    items: Optional[list[Any]] = None


class ShiftUpdateRequest(ApiModel):
    """Изменение смены по id."""
    init_data: Optional[str] = None
    payload: Optional[dict[str, Any]] = None
    car_name: Optional[str] = None
    car_class: Optional[str] = None
