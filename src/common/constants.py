# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class StorageBackend(str, Enum):
    """Хранилище, с которым работает API."""
    POSTGRES = "postgres"
    MEMORY = "memory"


# Окно свежести initData (секунды). Не настраивается.
AUTH_MAX_AGE_SECONDS = 300

# Заголовок, в котором Mini App передаёт initData
INIT_DATA_HEADER = "X-Telegram-Init-Data"
