# src/core/finance/__init__.py
"""
Финансовые расчёты по сменам.
"""

from src.core.finance.calculator import (
    ProfitBreakdown,
    commission,
    finite,
    profit,
    round_half_up,
    tax,
)

__all__ = ["ProfitBreakdown", "commission", "finite", "profit", "round_half_up", "tax"]
