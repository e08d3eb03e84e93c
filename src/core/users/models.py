# src/core/users/models.py
"""
Модели пользователя Mini App и его присутствия.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from src.shared.models.common import ApiModel


class Identity(ApiModel):
    """Пользователь, прошедший авторизацию через Telegram."""

    tg_id: int = Field(..., description="Telegram ID пользователя")
    username: Optional[str] = Field(None, description="Username в Telegram")
    first_name: Optional[str] = Field(None, description="Имя")
    last_name: Optional[str] = Field(None, description="Фамилия")
    language_code: Optional[str] = Field(None, description="Язык клиента Telegram")
    photo_url: Optional[str] = Field(None, description="Аватар")
    created_at: datetime = Field(..., description="Первая авторизация")
    updated_at: datetime = Field(..., description="Последнее обновление профиля")

    @property
    def display_name(self) -> str:
        """Отображаемое имя (username или имя)."""
        if self.username:
            return f"@{self.username}"
        return " ".join(p for p in (self.first_name, self.last_name) if p) or str(self.tg_id)


class Presence(ApiModel):
    """Последняя активность пользователя (одна запись на пользователя)."""

    tg_id: int
    last_seen: datetime
