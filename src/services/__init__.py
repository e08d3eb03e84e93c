# src/services/__init__.py
"""
HTTP-сервисы приложения.

Сервисы:
- miniapp_api: backend Telegram Mini App (авторизация, смены, сводки)
"""

__all__: list[str] = []
