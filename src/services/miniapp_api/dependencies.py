# src/services/miniapp_api/dependencies.py
"""
Dependency Injection для MiniApp API.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.core.reports.service import ReportService
from src.core.shifts.service import ShiftLedger
from src.core.users.service import UserService

if TYPE_CHECKING:
    from src.core.shifts.repository import ShiftRepository
    from src.core.users.repository import IdentityRepository
    from src.infra.database import DatabaseManager


# Синглтоны
_db: "DatabaseManager | None" = None
_user_service: UserService | None = None
_shift_ledger: ShiftLedger | None = None
_report_service: ReportService | None = None
_bot_token: str = ""


def init_dependencies(
    identity_repository: "IdentityRepository",
    shift_repository: "ShiftRepository",
    bot_token: str,
    db: "DatabaseManager | None" = None,
) -> None:
    """Инициализировать зависимости при старте приложения (или в тестах)."""
    global _db, _user_service, _shift_ledger, _report_service, _bot_token
    _db = db
    _bot_token = bot_token or ""
    _user_service = UserService(identity_repository)
    _shift_ledger = ShiftLedger(shift_repository)
    _report_service = ReportService(shift_repository)


def get_bot_token() -> str:
    """
    Токен бота для валидации initData.
    Пустая строка допустима: verify_init_data ответит no_bot_token.
    """
    return _bot_token


def get_database() -> "DatabaseManager | None":
    """Менеджер БД (None при in-memory хранилище)."""
    return _db


def get_user_service() -> UserService:
    """Получить сервис пользователей."""
    if _user_service is None:
        raise RuntimeError("UserService не инициализирован. Вызовите init_dependencies()")
    return _user_service


def get_shift_ledger() -> ShiftLedger:
    """Получить сервис смен."""
    if _shift_ledger is None:
        raise RuntimeError("ShiftLedger не инициализирован. Вызовите init_dependencies()")
    return _shift_ledger


def get_report_service() -> ReportService:
    """Получить сервис отчётов."""
    if _report_service is None:
        raise RuntimeError("ReportService не инициализирован. Вызовите init_dependencies()")
    return _report_service


async def cleanup_dependencies() -> None:
    """Очистить ресурсы при остановке приложения."""
    global _db, _user_service, _shift_ledger, _report_service
    if _db is not None:
        await _db.disconnect()
    _db = None
    _user_service = None
    _shift_ledger = None
    _report_service = None
