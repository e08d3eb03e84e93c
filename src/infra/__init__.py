"""
Инфраструктурный слой: PostgreSQL и in-memory хранилище.

In-memory репозитории импортируются напрямую из src.infra.memory_store.
"""

from src.infra.database import DatabaseManager, init_db, store_errors

__all__ = [
    "DatabaseManager",
    "init_db",
    "store_errors",
]
