# src/services/miniapp_api/auth.py
"""
Авторизация запросов Mini App по Telegram initData.

initData ищется по порядку: заголовок X-Telegram-Init-Data,
поле initData в JSON-теле, query-параметр initData.
"""

from __future__ import annotations

import json
from typing import Annotated

from fastapi import Depends, Request

from src.common.constants import INIT_DATA_HEADER
from src.common.logger import log_warning
from src.core.auth.init_data import InitDataError, VerifiedInitData, extract_user_id, verify_init_data
from src.services.miniapp_api.dependencies import get_bot_token


async def read_init_data(request: Request) -> str | None:
    """Сырые initData из запроса или None."""
    header = request.headers.get(INIT_DATA_HEADER)
    if header:
        return header

    if request.method != "GET":
        body = await request.body()
        if body:
            try:
                data = json.loads(body)
            except ValueError:
                data = None
            if isinstance(data, dict) and isinstance(data.get("initData"), str) and data["initData"]:
                return data["initData"]

    return request.query_params.get("initData") or None


async def _verify(request: Request, status_code: int) -> VerifiedInitData:
    raw = await read_init_data(request)
    try:
        return verify_init_data(raw, get_bot_token())
    except InitDataError as e:
        await log_warning(
            f"Отклонены initData ({e.code}) на {request.url.path}",
            extra={"tg_id": extract_user_id(raw or ""), "path": request.url.path},
        )
        e.status_code = status_code
        raise


async def require_session(request: Request) -> VerifiedInitData:
    """Вход и пинг: при отказе 403."""
    return await _verify(request, status_code=403)


async def require_user(request: Request) -> VerifiedInitData:
    """Остальные endpoints: при отказе 401."""
    return await _verify(request, status_code=401)


SessionUser = Annotated[VerifiedInitData, Depends(require_session)]
CurrentUser = Annotated[VerifiedInitData, Depends(require_user)]
