# src/core/users/__init__.py
"""
Домен пользователей: профиль из Telegram и присутствие.
"""

from src.core.users.models import Identity, Presence
from src.core.users.repository import IdentityRepository, PostgresIdentityRepository
from src.core.users.service import UserService, AuthResult

__all__ = [
    "Identity",
    "Presence",
    "IdentityRepository",
    "PostgresIdentityRepository",
    "UserService",
    "AuthResult",
]
