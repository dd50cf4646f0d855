from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_folio_db as get_db
from shared.core.schemas import TenantContext
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ...crud.hospitality import rate_periods_crud as crud
from ...crud.hospitality.rate_calculator import calculate_rates_for_period
from ...schemas.hospitality.rates_schemas import (
    CalculateRatesRequest, CalculateRatesResponse, DailyRateOut, DailyRateRequest,
    RatePeriodCreate, RatePeriodOut, RatePeriodUpdate, RoomTypeRates, SetDailyRateRequest
)

router = APIRouter(
    prefix="/api/rates",
    tags=["rates"],
    dependencies=[Depends(validate_current_token)]
)


# ----------------- Rate periods -----------------
@router.get("/periods", response_model=List[RatePeriodOut])
def get_rate_periods(
    room_type_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.get_rate_periods(db, current_user, room_type_id)


@router.post("/periods", response_model=RatePeriodOut)
def create_rate_period(
    payload: RatePeriodCreate,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.create_rate_period(db, current_user, payload)


@router.put("/periods", response_model=RatePeriodOut)
def update_rate_period(
    payload: RatePeriodUpdate,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.update_rate_period(db, current_user, payload)


@router.post("/periods/{rate_period_id:uuid}/toggle", response_model=RatePeriodOut)
def toggle_rate_period(
    rate_period_id: UUID,
    is_active: bool = Query(...),
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.toggle_rate_period(db, current_user, rate_period_id, is_active)


@router.delete("/periods/{rate_period_id:uuid}")
def delete_rate_period(
    rate_period_id: UUID,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    crud.delete_rate_period(db, current_user, rate_period_id)
    return success_response(None, "Rate period deleted", AppStatusCode.OPERATION_SUCCESSFUL)


# ----------------- Daily rates -----------------
@router.post("/calculate", response_model=CalculateRatesResponse)
def calculate_rates(
    payload: CalculateRatesRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    """Materialize daily rates for the range; manual overrides are kept."""
    written = calculate_rates_for_period(
        db, current_user, payload.start_date, payload.end_date, payload.room_type_id)
    return CalculateRatesResponse(rates_written=written)


@router.get("/daily", response_model=List[RoomTypeRates])
def get_daily_rates(
    params: DailyRateRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.get_daily_rates_grid(db, current_user, params.start_date, params.end_date)


@router.put("/daily", response_model=DailyRateOut)
def set_daily_rate(
    payload: SetDailyRateRequest,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    return crud.set_daily_rate(db, current_user, payload)


@router.delete("/daily/{room_type_id:uuid}/{day}")
def clear_manual_override(
    room_type_id: UUID,
    day: date,
    db: Session = Depends(get_db),
    current_user: TenantContext = Depends(validate_current_token)
):
    crud.clear_manual_override(db, current_user, room_type_id, day)
    return success_response(None, "Manual rate cleared", AppStatusCode.OPERATION_SUCCESSFUL)
