# src/core/users/service.py
"""
Сервис пользователей: вход через Mini App и пинги присутствия.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.common.errors import StoreError
from src.common.logger import log_info, log_warning
from src.common.constants import TypeMsg
from src.core.auth.init_data import VerifiedInitData
from src.core.users.models import Identity, Presence
from src.core.users.repository import IdentityRepository


@dataclass
class AuthResult:
    """Результат входа."""
    identity: Identity
    created: bool
    start_param: Optional[str] = None


class UserService:
    """
    Сервис пользователей.

    Presence обновляется в режиме fire-and-forget: сбой записи last_seen
    логируется и не ломает запрос.
    """

    def __init__(self, repository: IdentityRepository) -> None:
        self.repository = repository

    async def authenticate(self, init_data: VerifiedInitData) -> AuthResult:
        """
        Регистрирует пользователя или обновляет его профиль по проверенным initData.

        Args:
            init_data: Результат verify_init_data

        Returns:
            AuthResult с профилем и флагом первой регистрации
        """
        identity, created = await self.repository.upsert_identity(init_data.user)

        if created:
            await log_info(
                f"Новый пользователь {identity.tg_id} ({identity.display_name})",
                type_msg=TypeMsg.INFO,
                extra={"tg_id": identity.tg_id, "start_param": init_data.start_param},
            )
        else:
            await log_info(f"Вход пользователя {identity.tg_id}", type_msg=TypeMsg.DEBUG)

        await self.touch(identity.tg_id)
        return AuthResult(identity=identity, created=created, start_param=init_data.start_param)

    async def ping(self, tg_id: int, screen: Optional[str] = None) -> Optional[Presence]:
        """Пинг при открытии экрана Mini App."""
        await log_info(
            f"Открыт экран {screen or '-'} пользователем {tg_id}",
            type_msg=TypeMsg.DEBUG,
            extra={"tg_id": tg_id, "screen": screen},
        )
        return await self.touch(tg_id)

    async def touch(self, tg_id: int) -> Optional[Presence]:
        """Обновляет last_seen; при сбое хранилища возвращает None."""
        try:
            return await self.repository.touch_presence(tg_id)
        except StoreError as e:
            await log_warning(f"Не удалось обновить presence {tg_id}: {e.message}")
            return None
