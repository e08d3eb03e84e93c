# src/shared/__init__.py
"""
Общий код между слоями API и домена.

Модули:
- models: базовые Pydantic-модели, ответы API, перечисления
"""

__all__: list[str] = []
