# src/shared/models/__init__.py
"""
Общие Pydantic-модели и перечисления.
"""

from src.shared.models.common import ApiModel, ErrorResponse, HealthStatus
from src.shared.models.enums import ParkMode, TaxMode

__all__ = [
    "ApiModel",
    "ErrorResponse",
    "HealthStatus",
    "ParkMode",
    "TaxMode",
]
