# src/services/miniapp_api/routes.py
"""
HTTP-маршруты MiniApp API.

Endpoints:
- POST /api/auth/telegram - вход, регистрация пользователя
- POST /api/ping - пинг присутствия
- POST /api/shifts - записать смену
- POST /api/shifts/bulk - записать пакет смен
- GET /api/shifts - список смен
- GET/PUT/DELETE /api/shifts/{id} - смена по id
- GET /api/cars - сводки по автомобилям
- GET /api/cars/{carId}/summary - сводка по автомобилю
- GET /api/users/{tgId}/summary - сводка по пользователю
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query

from src.common.errors import NotFoundError
from src.core.reports.service import ReportService
from src.core.shifts.models import ShiftFilter, ShiftPatch
from src.core.shifts.service import ShiftLedger
from src.core.users.service import UserService
from src.services.miniapp_api.auth import CurrentUser, SessionUser
from src.services.miniapp_api.dependencies import (
    get_report_service,
    get_shift_ledger,
    get_user_service,
)
from src.services.miniapp_api.schemas import (
    AuthRequest,
    BulkUpsertRequest,
    PingRequest,
    ShiftUpdateRequest,
    ShiftUpsertRequest,
)

router = APIRouter(prefix="/api")

Users = Annotated[UserService, Depends(get_user_service)]
Ledger = Annotated[ShiftLedger, Depends(get_shift_ledger)]
Reports = Annotated[ReportService, Depends(get_report_service)]


# === AUTH ===

@router.post("/auth/telegram", tags=["Auth"])
async def auth_telegram(
    session: SessionUser,
    users: Users,
    request: Optional[AuthRequest] = None,
) -> dict[str, Any]:
    """Проверить initData, зарегистрировать или обновить пользователя."""
    result = await users.authenticate(session)
    return {
        "status": "ok",
        "userId": result.identity.tg_id,
        "user": result.identity.to_wire(),
        "startParam": result.start_param,
    }


@router.post("/ping", tags=["Auth"])
async def ping(
    session: SessionUser,
    users: Users,
    request: Optional[PingRequest] = None,
) -> dict[str, Any]:
    """Обновить last_seen пользователя."""
    await users.ping(session.tg_id, request.screen if request else None)
    return {"status": "ok"}


# === SHIFTS ===

@router.post("/shifts", tags=["Shifts"])
async def upsert_shift(
    user: CurrentUser,
    ledger: Ledger,
    request: Optional[ShiftUpsertRequest] = None,
) -> dict[str, Any]:
    """Создать или обновить смену по (carId, date)."""
    request = request or ShiftUpsertRequest()
    shift = await ledger.upsert(
        user.tg_id,
        request.car_id,
        request.date,
        request.payload,
        car_name=request.car_name,
        car_class=request.car_class,
    )
    return {"ok": True, "shift": shift.to_wire()}


@router.post("/shifts/bulk", tags=["Shifts"])
async def bulk_upsert_shifts(
    user: CurrentUser,
    ledger: Ledger,
    request: Optional[BulkUpsertRequest] = None,
) -> dict[str, Any]:
    """Записать пакет смен; ошибки элементов возвращаются поштучно."""
    items = request.items if request and request.items else []
    results = await ledger.bulk_upsert(user.tg_id, items)
    return {"ok": True, "results": [r.to_wire() for r in results]}


@router.get("/shifts", tags=["Shifts"])
async def list_shifts(
    user: CurrentUser,
    ledger: Ledger,
    date_from: Annotated[Optional[str], Query(alias="from")] = None,
    date_to: Annotated[Optional[str], Query(alias="to")] = None,
    car_id: Annotated[Optional[str], Query(alias="carId")] = None,
    updated_since: Annotated[Optional[str], Query(alias="updatedSince")] = None,
) -> dict[str, Any]:
    """Смены пользователя по возрастанию даты."""
    flt = ShiftFilter.build(date_from, date_to, car_id, updated_since)
    shifts = await ledger.find(user.tg_id, flt)
    return {"ok": True, "shifts": [s.to_wire() for s in shifts]}


@router.get("/shifts/{shift_id}", tags=["Shifts"])
async def get_shift(shift_id: str, user: CurrentUser, ledger: Ledger) -> dict[str, Any]:
    shift = await ledger.get(user.tg_id, shift_id)
    return {"ok": True, "shift": shift.to_wire()}


@router.put("/shifts/{shift_id}", tags=["Shifts"])
async def update_shift(
    shift_id: str,
    user: CurrentUser,
    ledger: Ledger,
    request: Optional[ShiftUpdateRequest] = None,
) -> dict[str, Any]:
    """Заменить payload и/или название и класс авто."""
    request = request or ShiftUpdateRequest()
    patch = ShiftPatch(payload=request.payload, car_name=request.car_name, car_class=request.car_class)
    shift = await ledger.update(user.tg_id, shift_id, patch)
    return {"ok": True, "shift": shift.to_wire()}


@router.delete("/shifts/{shift_id}", tags=["Shifts"])
async def delete_shift(shift_id: str, user: CurrentUser, ledger: Ledger) -> dict[str, Any]:
    await ledger.delete(user.tg_id, shift_id)
    return {"ok": True}


# === REPORTS ===

@router.get("/cars", tags=["Reports"])
async def list_cars(user: CurrentUser, reports: Reports) -> dict[str, Any]:
    """Сводки по всем автомобилям пользователя."""
    cars = await reports.by_car(user.tg_id)
    return {"ok": True, "cars": [c.to_wire() for c in cars]}


@router.get("/cars/{car_id}/summary", tags=["Reports"])
async def car_summary(
    car_id: str,
    user: CurrentUser,
    reports: Reports,
    date_from: Annotated[Optional[str], Query(alias="from")] = None,
    date_to: Annotated[Optional[str], Query(alias="to")] = None,
) -> dict[str, Any]:
    """Итог по одному автомобилю за период."""
    report = await reports.car_summary(user.tg_id, car_id, date_from, date_to)
    return {"ok": True, **report.to_wire()}


@router.get("/users/{tg_id}/summary", tags=["Reports"])
async def user_summary(tg_id: str, user: CurrentUser, reports: Reports) -> dict[str, Any]:
    """Итог пользователя. Доступен только свой: me или собственный tgId."""
    if tg_id != "me" and tg_id != str(user.tg_id):
        raise NotFoundError()
    report = await reports.user_summary(user.tg_id)
    return {"ok": True, **report.to_wire()}
