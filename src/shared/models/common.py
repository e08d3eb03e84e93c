# src/shared/models/common.py
"""
Общие модели для API и доменных сервисов.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    База для моделей, уходящих клиенту.
    На проводе поля в camelCase (как их шлёт Mini App), в коде — snake_case.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Словарь для JSON-ответа."""
        return self.model_dump(mode="json", by_alias=True)


class ErrorResponse(BaseModel):
    """Стандартный ответ с ошибкой."""

    ok: bool = False
    error: str


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    service: str
    status: str = "healthy"  # healthy, degraded, unhealthy
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
