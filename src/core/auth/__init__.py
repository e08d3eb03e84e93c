# src/core/auth/__init__.py
"""
Проверка подписи Telegram Mini App initData.
"""

from src.core.auth.init_data import (
    AuthErrorKind,
    InitDataError,
    TelegramUser,
    VerifiedInitData,
    verify_init_data,
)

__all__ = [
    "AuthErrorKind",
    "InitDataError",
    "TelegramUser",
    "VerifiedInitData",
    "verify_init_data",
]
