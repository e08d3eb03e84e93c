# tests/core/test_finance.py
"""
Тесты расчёта комиссии, налога и прибыли смены.
"""

from __future__ import annotations

import math
from typing import Any

import pytest

from src.core.finance import commission, profit, round_half_up, tax
from src.core.shifts.models import ShiftPayload


def _park(mode: str, **values: Any) -> dict[str, Any]:
    return {"settings": {"park": {"mode": mode, **values}}}


class TestRoundHalfUp:
    """Тесты округления ручных значений."""

    @pytest.mark.parametrize(
        "value,expected",
        [(15.5, 16), (15.49, 15), (0.5, 1), (-0.4, 0), (-15.5, -15), (7, 7)],
    )
    def test_rounding(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected


class TestCommission:
    """Тесты комиссии парка."""

    def test_no_mode(self) -> None:
        assert commission({"income": 1000}) == 0
        assert commission({"income": 1000, **_park("none", percent=20)}) == 0

    def test_unknown_mode(self) -> None:
        assert commission({"income": 1000, **_park("weekly", dayFee=500)}) == 0

    def test_day_fee_when_worked(self) -> None:
        payload = {"income": 0, "orders": 0, "tips": 10, **_park("day", dayFee=500)}
        assert commission(payload) == 500

    def test_day_fee_idle_day(self) -> None:
        """Нет ни дохода, ни заказов, ни чаевых: плата за день не берётся."""
        payload = {"income": 0, "orders": 0, "otherIncome": 0, "tips": 0, **_park("day", dayFee=500)}
        assert commission(payload) == 0

    def test_per_order(self) -> None:
        assert commission({"orders": 12, **_park("order", orderFee=25)}) == 300

    def test_percent(self) -> None:
        assert commission({"income": 1000, **_park("percent", percent=20)}) == pytest.approx(200)

    @pytest.mark.parametrize("manual,expected", [(15.5, 16), (-3, 0), ("120", 120), (0, 0)])
    def test_manual_override(self, manual: Any, expected: int) -> None:
        payload = {"income": 1000, "commissionManual": manual, **_park("percent", percent=20)}
        assert commission(payload) == expected

    def test_manual_garbage_falls_back_to_mode(self) -> None:
        payload = {"income": 1000, "commissionManual": "n/a", **_park("percent", percent=20)}
        assert commission(payload) == pytest.approx(200)


class TestTax:
    """Тесты налога."""

    def test_self_employed(self) -> None:
        assert tax({"income": 1000, "settings": {"taxMode": "self4"}}) == pytest.approx(40)

    def test_individual_entrepreneur(self) -> None:
        assert tax({"income": 1000, "settings": {"taxMode": "ip6"}}) == pytest.approx(60)

    @pytest.mark.parametrize("mode", ["none", "vat20", None])
    def test_no_tax(self, mode: Any) -> None:
        assert tax({"income": 1000, "settings": {"taxMode": mode}}) == 0

    def test_manual_override(self) -> None:
        payload = {"income": 1000, "taxManual": 15.5, "settings": {"taxMode": "ip6"}}
        assert tax(payload) == 16

    def test_negative_manual_clamped(self) -> None:
        assert tax({"taxManual": -10}) == 0


class TestProfit:
    """Тесты итоговой разбивки."""

    def test_breakdown(self, sample_payload: dict[str, Any]) -> None:
        """income 1000, tips 50, rent 200, fuel 100, 20% парку, 4% налог."""
        result = profit(sample_payload)

        assert result.gross == pytest.approx(1050)
        assert result.commission == pytest.approx(200)
        assert result.tax == pytest.approx(40)
        assert result.costs == pytest.approx(540)
        assert result.profit == pytest.approx(510)

    def test_fines_and_other_lines(self) -> None:
        payload = {"income": 500, "otherIncome": 100, "otherExpense": 30, "fines": 70}
        result = profit(payload)

        assert result.gross == 600
        assert result.costs == 100
        assert result.profit == 500

    def test_to_dict(self) -> None:
        assert profit({}).to_dict() == {"gross": 0, "commission": 0, "tax": 0, "costs": 0, "profit": 0}

    def test_accepts_parsed_payload(self, sample_payload: dict[str, Any]) -> None:
        assert profit(ShiftPayload.parse(sample_payload)) == profit(sample_payload)


class TestMalformedPayload:
    """Кривые payload не роняют расчёт."""

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            "garbage",
            [],
            {"income": "abc", "fuel": None, "rent": {}},
            {"income": float("nan"), "tips": float("inf")},
            {"settings": "oops"},
            {"settings": {"park": [1, 2], "taxMode": {"x": 1}}},
            {"settings": {"park": {"mode": ["day"], "dayFee": "many"}}},
            {"income": True, "orders": False},
        ],
    )
    def test_zero_contribution(self, payload: Any) -> None:
        result = profit(payload)

        for value in result.to_dict().values():
            assert math.isfinite(value)
            assert value == 0

    def test_numeric_strings_accepted(self) -> None:
        result = profit({"income": "1000", "tips": " 50,5 ", "settings": {"taxMode": "self4"}})

        assert result.gross == pytest.approx(1050.5)
        assert result.tax == pytest.approx(40)

    def test_unknown_keys_preserved(self) -> None:
        parsed = ShiftPayload.parse({"income": 1, "note": "ночная смена"})
        assert parsed.model_extra == {"note": "ночная смена"}

    @pytest.mark.parametrize("extreme", [10**400, -(10**400), float("inf"), float("nan"), "1e999"])
    def test_extreme_numbers(self, extreme: Any) -> None:
        """Слишком большие и не конечные числа дают нулевой вклад."""
        result = profit({"income": extreme, "rent": 1, "commissionManual": extreme, "taxManual": extreme})

        assert result.gross == 0
        assert result.commission == 0
        assert result.tax == 0
        assert result.costs == 1
        assert result.profit == -1

    def test_arithmetic_overflow_stays_finite(self) -> None:
        payload = {
            "income": 1e308,
            "tips": 1e308,
            "rent": -1e308,
            "fuel": -1e308,
            "settings": {"park": {"mode": "percent", "percent": 1e308}, "taxMode": "ip6"},
        }

        result = profit(payload)

        for value in result.to_dict().values():
            assert math.isfinite(value)


class TestProfitBreakdown:
    """Тесты результата расчёта."""

    def test_is_frozen(self) -> None:
        result = profit({"income": 100})

        with pytest.raises(AttributeError):
            result.profit = 0
