# src/core/shifts/__init__.py
"""
Учёт смен: модели, репозиторий, сервис.
"""

from src.core.shifts.models import (
    BulkItemResult,
    Shift,
    ShiftFilter,
    ShiftPatch,
    ShiftPayload,
)
from src.core.shifts.repository import ShiftRepository, PostgresShiftRepository
from src.core.shifts.service import ShiftLedger

__all__ = [
    "BulkItemResult",
    "Shift",
    "ShiftFilter",
    "ShiftPatch",
    "ShiftPayload",
    "ShiftRepository",
    "PostgresShiftRepository",
    "ShiftLedger",
]
