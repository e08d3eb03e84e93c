# src/services/miniapp_api/__init__.py
"""
MiniApp API — HTTP backend Telegram Mini App учёта смен.

- Валидация Telegram initData на каждом запросе
- Учёт смен с идемпотентным upsert и пакетной записью
- Сводки по автомобилям и по пользователю
"""
