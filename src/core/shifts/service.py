# src/core/shifts/service.py
"""
Учёт смен (ShiftLedger).

Все операции выполняются от имени проверенного пользователя (tg_id)
и видят только его смены.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from src.common.constants import TypeMsg
from src.common.errors import NotFoundError, StoreError, ValidationError
from src.common.logger import log_error, log_info
from src.core.shifts.models import BulkItemResult, Shift, ShiftFilter, ShiftPatch
from src.core.shifts.repository import ShiftRepository


def _clean(value: Any) -> Optional[str]:
    """Непустая строка или None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class ShiftLedger:
    """Сервис смен поверх ShiftRepository."""

    def __init__(self, repository: ShiftRepository) -> None:
        self.repository = repository

    async def upsert(
        self,
        tg_id: int,
        car_id: Any,
        date: Any,
        payload: Optional[Mapping[str, Any]] = None,
        car_name: Any = None,
        car_class: Any = None,
    ) -> Shift:
        """
        Создаёт или обновляет смену по ключу (tg_id, car_id, date).

        Raises:
            ValidationError: CAR_ID_REQUIRED / DATE_REQUIRED
            StoreError: Сбой хранилища
        """
        car_id = _clean(car_id)
        if not car_id:
            raise ValidationError("CAR_ID_REQUIRED")
        date = _clean(date)
        if not date:
            raise ValidationError("DATE_REQUIRED")

        shift = await self.repository.upsert(
            tg_id,
            car_id,
            date,
            dict(payload or {}),
            car_name=_clean(car_name),
            car_class=_clean(car_class),
        )
        await log_info(f"Смена {shift.id} сохранена ({tg_id}/{car_id}/{date})", type_msg=TypeMsg.DEBUG)
        return shift

    async def bulk_upsert(self, tg_id: int, items: Sequence[Any]) -> list[BulkItemResult]:
        """
        Пакетный upsert (очередь офлайн-правок клиента).

        Элементы обрабатываются по порядку и независимо: ошибка одного
        попадает в его слот результата, остальные записываются.

        Raises:
            ValidationError: EMPTY_ITEMS, если список пуст
        """
        if not items:
            raise ValidationError("EMPTY_ITEMS")

        results: list[BulkItemResult] = []
        for idx, item in enumerate(items):
            results.append(await self._bulk_item(tg_id, idx, item))

        failed = sum(1 for r in results if not r.ok)
        await log_info(
            f"Пакет смен {tg_id}: {len(results) - failed} ок, {failed} с ошибкой",
            type_msg=TypeMsg.INFO if not failed else TypeMsg.WARNING,
        )
        return results

    async def _bulk_item(self, tg_id: int, idx: int, item: Any) -> BulkItemResult:
        if not isinstance(item, Mapping):
            return BulkItemResult(idx=idx, ok=False, error="CAR_ID_AND_DATE_REQUIRED")

        car_id = _clean(item.get("carId"))
        date = _clean(item.get("date"))
        if not car_id or not date:
            return BulkItemResult(idx=idx, ok=False, error="CAR_ID_AND_DATE_REQUIRED")

        payload = item.get("payload")
        try:
            shift = await self.repository.upsert(
                tg_id,
                car_id,
                date,
                dict(payload) if isinstance(payload, Mapping) else {},
                car_name=_clean(item.get("carName")),
                car_class=_clean(item.get("carClass")),
            )
        except StoreError as e:
            await log_error(f"Пакет смен {tg_id}: элемент {idx} не записан: {e.message}")
            return BulkItemResult(idx=idx, ok=False, error="UPSERT_FAILED")
        except Exception as e:
            await log_error(f"Пакет смен {tg_id}: элемент {idx} упал: {e}", exc_info=True)
            return BulkItemResult(idx=idx, ok=False, error="UPSERT_FAILED")

        return BulkItemResult(
            idx=idx,
            ok=True,
            id=shift.id,
            car_id=shift.car_id,
            date=shift.date,
            updated_at=shift.updated_at,
        )

    async def find(self, tg_id: int, flt: Optional[ShiftFilter] = None) -> list[Shift]:
        """Смены пользователя по фильтру, по возрастанию даты."""
        return await self.repository.find(tg_id, flt or ShiftFilter())

    async def get(self, tg_id: int, shift_id: str) -> Shift:
        """
        Смена по id.

        Raises:
            NotFoundError: Нет такой смены у этого пользователя
        """
        shift = await self.repository.get(tg_id, shift_id)
        if shift is None:
            raise NotFoundError()
        return shift

    async def update(self, tg_id: int, shift_id: str, patch: ShiftPatch) -> Shift:
        """
        Меняет payload (целиком) и/или кэш названия и класса авто.

        Raises:
            NotFoundError: Нет такой смены у этого пользователя
        """
        shift = await self.repository.update(
            tg_id,
            shift_id,
            payload=dict(patch.payload) if patch.payload is not None else None,
            car_name=_clean(patch.car_name),
            car_class=_clean(patch.car_class),
        )
        if shift is None:
            raise NotFoundError()
        await log_info(f"Смена {shift_id} обновлена пользователем {tg_id}", type_msg=TypeMsg.DEBUG)
        return shift

    async def delete(self, tg_id: int, shift_id: str) -> None:
        """
        Удаляет смену.

        Raises:
            NotFoundError: Нет такой смены у этого пользователя
        """
        if not await self.repository.delete(tg_id, shift_id):
            raise NotFoundError()
        await log_info(f"Смена {shift_id} удалена пользователем {tg_id}", type_msg=TypeMsg.INFO)
