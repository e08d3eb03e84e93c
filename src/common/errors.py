# src/common/errors.py
"""
Иерархия ошибок приложения.

Каждая ошибка несёт машиночитаемый код (уходит клиенту в поле ``error``)
и HTTP-статус, с которым её отдаёт API.
"""

from __future__ import annotations


class AppError(Exception):
    """Базовая ошибка приложения."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(self, code: str | None = None, message: str | None = None) -> None:
        self.code = code or self.default_code
        self.message = message or self.code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        """Тело ответа с ошибкой."""
        return {"ok": False, "error": self.code}


class AuthError(AppError):
    """Невалидные, отсутствующие или устаревшие данные запуска."""

    status_code = 401
    default_code = "unauthorized"

    def __init__(self, code: str | None = None, message: str | None = None, status_code: int = 401) -> None:
        super().__init__(code, message)
        self.status_code = status_code


class ValidationError(AppError):
    """Не хватает обязательного поля в запросе."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """Запись не существует или принадлежит другому пользователю."""

    status_code = 404
    default_code = "NOT_FOUND"


class StoreError(AppError):
    """Сбой хранилища."""

    status_code = 500
    default_code = "STORE_ERROR"
