# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import urlencode

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("BOT_TOKEN", "test_bot_token")
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("STORAGE_BACKEND", "memory")

from src.core.auth.init_data import build_data_check_string, compute_hash  # noqa: E402
from src.infra.memory_store import InMemoryIdentityRepository, InMemoryShiftRepository  # noqa: E402


TEST_BOT_TOKEN = "123456:TEST-bot-token"

_SAMPLE_USER = object()


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "PROJECT_NAME": "taxipro_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "API_HOST": "127.0.0.1",
        "API_PORT": 8181,
        "CORS_ALLOW_ORIGINS": ["https://example.github.io"],
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "BOT_TOKEN": "",
        "STORAGE_BACKEND": "memory",
        "DB_HOST": "localhost",
        "DB_PORT": 5432,
        "DB_NAME": "taxipro_test",
        "DB_USER": "postgres",
        "DB_PASSWORD": "test_password",
        "DB_MIN_POOL_SIZE": 1,
        "DB_MAX_POOL_SIZE": 5,
        "DB_COMMAND_TIMEOUT": 10,
    }


# =============================================================================
# TELEGRAM INIT DATA
# =============================================================================

@pytest.fixture
def bot_token() -> str:
    """Токен бота, которым подписываются тестовые initData."""
    return TEST_BOT_TOKEN


@pytest.fixture
def sample_tg_user() -> dict[str, Any]:
    """Пользователь Telegram в том виде, в каком он приходит в initData."""
    return {
        "id": 123456789,
        "first_name": "Иван",
        "last_name": "Петров",
        "username": "ivan_driver",
        "language_code": "ru",
    }


@pytest.fixture
def make_init_data(bot_token: str, sample_tg_user: dict[str, Any]) -> Callable[..., str]:
    """
    Фабрика подписанных initData.

    Example:
        raw = make_init_data(user={"id": 1}, auth_date=now - 10)
        raw = make_init_data(user=None)  # без поля user
    """
    def factory(
        user: Any = _SAMPLE_USER,
        auth_date: int | None = None,
        token: str | None = None,
        **fields: Any,
    ) -> str:
        pairs: dict[str, str] = {
            "auth_date": str(int(time.time()) if auth_date is None else auth_date),
            "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        }
        if user is _SAMPLE_USER:
            user = sample_tg_user
        if user is not None:
            pairs["user"] = user if isinstance(user, str) else json.dumps(user, ensure_ascii=False)
        pairs.update({k: str(v) for k, v in fields.items()})

        check_string = build_data_check_string(list(pairs.items()))
        pairs["hash"] = compute_hash(check_string, token or bot_token)
        return urlencode(pairs)

    return factory


# =============================================================================
# ХРАНИЛИЩА
# =============================================================================

@pytest.fixture
def identity_repo() -> InMemoryIdentityRepository:
    """In-memory репозиторий пользователей."""
    return InMemoryIdentityRepository()


@pytest.fixture
def shift_repo() -> InMemoryShiftRepository:
    """In-memory репозиторий смен."""
    return InMemoryShiftRepository()


@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок DatabaseManager для Postgres-репозиториев."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="OK")
    db.transaction = MagicMock()
    return db


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """Типичный payload смены: процент парка и самозанятость."""
    return {
        "income": 1000,
        "tips": 50,
        "rent": 200,
        "fuel": 100,
        "orders": 12,
        "settings": {"park": {"mode": "percent", "percent": 20}, "taxMode": "self4"},
    }
