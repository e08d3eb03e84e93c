# src/core/reports/__init__.py
"""
Отчёты по сменам.
"""

from src.core.reports.models import CarMeta, CarReport, CarSummary, Totals, UserReport
from src.core.reports.service import ReportService

__all__ = ["CarMeta", "CarReport", "CarSummary", "Totals", "UserReport", "ReportService"]
