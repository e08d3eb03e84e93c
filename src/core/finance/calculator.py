# src/core/finance/calculator.py
"""
Расчёт прибыли смены.

Чистые функции от payload: без побочных эффектов и без исключений.
Кривое поле в payload даёт нулевой вклад, а не ошибку.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any

from src.core.shifts.models import ShiftPayload
from src.shared.models.enums import ParkMode, TaxMode

# Ставки налога от дохода
TAX_RATES: dict[TaxMode, float] = {
    TaxMode.SELF4: 0.04,
    TaxMode.IP6: 0.06,
}


@dataclass(frozen=True)
class ProfitBreakdown:
    """Разбивка прибыли смены."""
    gross: float
    commission: float
    tax: float
    costs: float
    profit: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def finite(value: float) -> float:
    """Переполнение в расчёте (inf, NaN) считается нулём."""
    return value if math.isfinite(value) else 0.0


def round_half_up(value: float) -> int:
    """Округление как Math.round в Mini App: 15.5 -> 16, -15.5 -> -15."""
    return math.floor(value + 0.5)


def commission(payload: Any) -> float:
    """
    Комиссия парка.

    Ручное значение (commissionManual) перекрывает расчёт по settings.park:
    - day: dayFee, если за день был хоть какой-то доход или заказы;
    - order: orders * orderFee;
    - percent: income * percent / 100.
    """
    p = ShiftPayload.parse(payload)
    if p.commission_manual is not None:
        return float(max(0, round_half_up(p.commission_manual)))

    park = p.settings.park
    match park.mode:
        case ParkMode.DAY:
            worked = any(v > 0 for v in (p.income, p.orders, p.other_income, p.tips))
            return park.day_fee if worked else 0.0
        case ParkMode.ORDER:
            return finite(p.orders * park.order_fee)
        case ParkMode.PERCENT:
            return finite(p.income * park.percent / 100)
        case _:
            return 0.0


def tax(payload: Any) -> float:
    """Налог: taxManual, иначе доля дохода по settings.taxMode."""
    p = ShiftPayload.parse(payload)
    if p.tax_manual is not None:
        return float(max(0, round_half_up(p.tax_manual)))
    rate = TAX_RATES.get(p.settings.tax_mode) if p.settings.tax_mode else None
    return finite(p.income * rate) if rate else 0.0


def profit(payload: Any) -> ProfitBreakdown:
    """gross = доходы; costs = расходы + комиссия + налог; profit = gross - costs."""
    p = ShiftPayload.parse(payload)
    gross = finite(p.income + p.tips + p.other_income)
    fee = commission(p)
    duty = tax(p)
    costs = finite(p.rent + p.fuel + p.other_expense + p.fines + fee + duty)
    return ProfitBreakdown(gross=gross, commission=fee, tax=duty, costs=costs, profit=finite(gross - costs))
