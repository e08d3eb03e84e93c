# src/core/__init__.py
"""
Доменный слой (Core Domain).
Авторизация, пользователи, учёт смен, расчёт прибыли и отчёты.
"""
