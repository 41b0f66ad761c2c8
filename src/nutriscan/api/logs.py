"""Consumption log endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from nutriscan.api.dependencies import current_user, get_container
from nutriscan.api.responses import (
    entry_to_dict,
    food_to_dict,
    page_to_dict,
    summary_to_dict,
)
from nutriscan.api.schemas import LogCreateRequest, LogScanRequest, LogUpdateRequest
from nutriscan.containers import AppContainer
from nutriscan.domain.models import UserRecord

router = APIRouter(prefix="/api/logs", tags=["logs"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_log(
    body: LogCreateRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Log a stored food item; nutrients scale with the amount consumed."""
    entry = container.consumption_service.log_food(
        user.id,
        body.barcode,
        body.amount_consumed,
        log_date=body.log_date,
        overrides=None if body.auto_calculate else body.overrides(),
    )
    return {
        "message": "Consumption logged successfully",
        "consumptionLog": entry_to_dict(entry),
    }


@router.post("/scan", status_code=status.HTTP_201_CREATED)
async def scan_and_log(
    body: LogScanRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Look up a barcode and log it for today in one step."""
    lookup, entry = await container.consumption_service.scan_and_log(
        user.id, body.barcode, body.amount_consumed
    )
    return {
        "message": "Food scanned and logged successfully",
        "consumptionLog": entry_to_dict(entry),
        "foodItem": food_to_dict(lookup.food),
        "source": lookup.source,
    }


@router.get("")
async def list_logs(  # noqa: PLR0913
    day: date | None = Query(default=None, alias="date"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    result = container.consumption_service.list_entries(
        user.id, day=day, start=start_date, end=end_date, page=page, limit=limit
    )
    return page_to_dict(result)


@router.get("/daily-summary/{day}")
async def daily_summary(
    day: date,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    """Return the day's totals compared with the user's goal."""
    summary = container.consumption_service.daily_summary(user.id, day)
    return summary_to_dict(summary)


@router.get("/{entry_id}")
async def get_log(
    entry_id: UUID,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    entry = container.consumption_service.get_entry(user.id, entry_id)
    return {"consumptionLog": entry_to_dict(entry)}


@router.put("/{entry_id}")
async def update_log(
    entry_id: UUID,
    body: LogUpdateRequest,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    changes: dict[str, object] = {
        "amount_g": body.amount_consumed,
        "log_date": body.log_date,
        **body.overrides(),
    }
    entry = container.consumption_service.update_entry(
        user.id, entry_id, changes, auto_calculate=body.auto_calculate
    )
    return {
        "message": "Consumption log updated successfully",
        "consumptionLog": entry_to_dict(entry),
    }


@router.delete("/{entry_id}")
async def delete_log(
    entry_id: UUID,
    user: UserRecord = Depends(current_user),
    container: AppContainer = Depends(get_container),
) -> dict[str, object]:
    container.consumption_service.delete_entry(user.id, entry_id)
    return {"message": "Consumption log deleted successfully"}
