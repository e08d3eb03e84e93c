# src/core/reports/service.py
"""
Отчёты: свёртка смен по автомобилям и по пользователю.
Производные суммы считаются на лету и никуда не сохраняются.
"""

from __future__ import annotations

from typing import Iterable, Optional

from src.core.finance.calculator import profit
from src.core.reports.models import CarMeta, CarReport, CarSummary, Totals, UserReport
from src.core.shifts.models import Shift, ShiftFilter, ShiftPayload
from src.core.shifts.repository import ShiftRepository


def fold_by_car(shifts: Iterable[Shift]) -> dict[str, CarSummary]:
    """
    Одна сводка на car_id. Название и класс берутся из первой встреченной
    смены, last_date — максимальная дата (строки YYYY-MM-DD сравниваются как строки).
    """
    acc: dict[str, CarSummary] = {}
    for shift in shifts:
        summary = acc.get(shift.car_id)
        if summary is None:
            summary = CarSummary(car_id=shift.car_id, car_name=shift.car_name, car_class=shift.car_class)
            acc[shift.car_id] = summary

        payload = ShiftPayload.parse(shift.payload)
        summary.add(payload.income, profit(payload))
        if summary.last_date is None or shift.date > summary.last_date:
            summary.last_date = shift.date
    return acc


def fold_total(shifts: Iterable[Shift]) -> Totals:
    """Сумма по всем сменам."""
    total = Totals()
    for shift in shifts:
        payload = ShiftPayload.parse(shift.payload)
        total.add(payload.income, profit(payload))
    return total


class ReportService:
    """Сводки по сменам пользователя."""

    def __init__(self, repository: ShiftRepository) -> None:
        self.repository = repository

    async def by_car(self, tg_id: int) -> list[CarSummary]:
        """Сводки по всем автомобилям пользователя (порядок не гарантирован)."""
        shifts = await self.repository.find(tg_id, ShiftFilter())
        return list(fold_by_car(shifts).values())

    async def car_summary(
        self,
        tg_id: int,
        car_id: str,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> CarReport:
        """
        Итог по одному автомобилю за период.

        meta берётся из первой строки выборки, а не из самой свежей смены:
        название/класс могут отставать, если пользователь их менял.
        """
        flt = ShiftFilter(date_from=date_from or None, date_to=date_to or None, car_id=car_id)
        shifts = await self.repository.find(tg_id, flt)

        meta = CarMeta(car_id=car_id)
        if shifts:
            meta.car_name = shifts[0].car_name
            meta.car_class = shifts[0].car_class
        return CarReport(meta=meta, total=fold_total(shifts))

    async def user_summary(self, tg_id: int) -> UserReport:
        """Общий итог пользователя и разбивка по автомобилям."""
        shifts = await self.repository.find(tg_id, ShiftFilter())
        return UserReport(total=fold_total(shifts), cars=list(fold_by_car(shifts).values()))
