# src/core/auth/init_data.py
"""
Валидация Telegram Mini App initData.
https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app

Проверка чистая: результат зависит только от строки initData,
токена бота и текущего времени.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from enum import Enum
from typing import Any
from urllib.parse import parse_qsl

from pydantic import BaseModel, Field

from src.common.constants import AUTH_MAX_AGE_SECONDS
from src.common.errors import AuthError


class AuthErrorKind(str, Enum):
    """Причины отказа в авторизации (уходят клиенту как код ошибки)."""
    NO_INIT_DATA = "no_init_data"
    NO_HASH = "no_hash"
    NO_BOT_TOKEN = "no_bot_token"
    BAD_HASH = "bad_hash"
    STALE_AUTH = "stale_auth"
    BAD_USER_JSON = "bad_user_json"

    def __str__(self) -> str:
        return self.value


class InitDataError(AuthError):
    """Ошибка валидации initData."""

    def __init__(self, kind: AuthErrorKind, status_code: int = 401) -> None:
        super().__init__(kind.value, f"initData отклонены: {kind.value}", status_code=status_code)
        self.kind = kind


class TelegramUser(BaseModel):
    """Данные пользователя из initData."""
    id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None
    is_premium: bool | None = None
    photo_url: str | None = None


class VerifiedInitData(BaseModel):
    """Проверенные initData."""
    user: TelegramUser
    auth_date: int
    fields: dict[str, str] = Field(default_factory=dict)

    @property
    def tg_id(self) -> int:
        return self.user.id

    @property
    def start_param(self) -> str | None:
        """Реферальный параметр запуска, если Mini App открыта по ссылке с ним."""
        return self.fields.get("start_param")


def build_data_check_string(pairs: list[tuple[str, str]]) -> str:
    """Пары key=value, отсортированные по ключу, через перевод строки."""
    return "\n".join(f"{key}={value}" for key, value in sorted(pairs, key=lambda kv: kv[0]))


def compute_hash(data_check_string: str, bot_token: str) -> str:
    """
    HMAC-SHA256 от data_check_string в hex.
    Секретный ключ: HMAC-SHA256(key="WebAppData", msg=bot_token).
    """
    secret_key = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    return hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()


def verify_init_data(
    init_data: str | None,
    bot_token: str | None,
    now: int | None = None,
) -> VerifiedInitData:
    """
    Валидировать initData от Telegram Mini App.

    Args:
        init_data: URL-encoded строка Telegram.WebApp.initData
        bot_token: Токен бота
        now: Текущее время (unix, секунды); по умолчанию time.time()

    Returns:
        VerifiedInitData с пользователем и всеми полями, кроме hash

    Raises:
        InitDataError: Если данные отсутствуют, подделаны или устарели
    """
    if not init_data:
        raise InitDataError(AuthErrorKind.NO_INIT_DATA)

    pairs = parse_qsl(init_data, keep_blank_values=True)

    received_hash: str | None = None
    check_pairs: list[tuple[str, str]] = []
    for key, value in pairs:
        if key == "hash" and received_hash is None:
            received_hash = value
        else:
            check_pairs.append((key, value))

    if not received_hash:
        raise InitDataError(AuthErrorKind.NO_HASH)

    if not bot_token:
        raise InitDataError(AuthErrorKind.NO_BOT_TOKEN)

    calculated_hash = compute_hash(build_data_check_string(check_pairs), bot_token)
    if not hmac.compare_digest(calculated_hash.encode(), received_hash.encode()):
        raise InitDataError(AuthErrorKind.BAD_HASH)

    fields = dict(sorted(check_pairs, key=lambda kv: kv[0]))

    now = int(time.time()) if now is None else now
    auth_date = _parse_auth_date(fields.get("auth_date"))
    if not auth_date or abs(now - auth_date) > AUTH_MAX_AGE_SECONDS:
        raise InitDataError(AuthErrorKind.STALE_AUTH)

    user = _parse_user(fields.get("user"))
    return VerifiedInitData(user=user, auth_date=auth_date, fields=fields)


def _parse_auth_date(raw: str | None) -> int:
    try:
        return int(raw) if raw is not None else 0
    except ValueError:
        return 0


def _parse_user(raw: str | None) -> TelegramUser:
    try:
        data: Any = json.loads(raw) if raw is not None else None
    except ValueError:
        raise InitDataError(AuthErrorKind.BAD_USER_JSON)

    if not isinstance(data, dict):
        raise InitDataError(AuthErrorKind.BAD_USER_JSON)
    user_id = data.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise InitDataError(AuthErrorKind.BAD_USER_JSON)

    known = {k: v for k, v in data.items() if k in TelegramUser.model_fields}
    try:
        return TelegramUser(**known)
    except ValueError:
        raise InitDataError(AuthErrorKind.BAD_USER_JSON)


def extract_user_id(init_data: str) -> int | None:
    """
    Быстрое извлечение user id из initData без проверки подписи.
    Только для логирования отклонённых запросов.
    """
    for key, value in parse_qsl(init_data or "", keep_blank_values=True):
        if key != "user":
            continue
        try:
            data = json.loads(value)
        except ValueError:
            return None
        user_id = data.get("id") if isinstance(data, dict) else None
        return user_id if isinstance(user_id, int) else None
    return None
