# src/core/reports/models.py
"""
Модели отчётов по сменам.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from src.core.finance.calculator import ProfitBreakdown, finite
from src.shared.models.common import ApiModel


class Totals(ApiModel):
    """Суммы по набору смен."""
    days: int = 0
    income: float = 0.0
    gross: float = 0.0
    commission: float = 0.0
    tax: float = 0.0
    costs: float = 0.0
    profit: float = 0.0

    def add(self, income: float, breakdown: ProfitBreakdown) -> None:
        """Добавляет одну смену."""
        self.days += 1
        self.income = finite(self.income + income)
        self.gross = finite(self.gross + breakdown.gross)
        self.commission = finite(self.commission + breakdown.commission)
        self.tax = finite(self.tax + breakdown.tax)
        self.costs = finite(self.costs + breakdown.costs)
        self.profit = finite(self.profit + breakdown.profit)


class CarSummary(Totals):
    """Сводка по одному автомобилю."""
    car_id: str
    car_name: Optional[str] = None
    car_class: Optional[str] = None
    last_date: Optional[str] = None


class CarMeta(ApiModel):
    """Название и класс авто (из произвольной смены выборки)."""
    car_id: str
    car_name: Optional[str] = None
    car_class: Optional[str] = None


class CarReport(ApiModel):
    """Отчёт по одному автомобилю за период."""
    meta: CarMeta
    total: Totals


class UserReport(ApiModel):
    """Отчёт по всем автомобилям пользователя."""
    total: Totals
    cars: list[CarSummary] = Field(default_factory=list)
