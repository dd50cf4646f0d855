import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.schemas import TenantContext
from shared.utils.money import money
from ...core.databases import commit_or_raise
from ...core.exceptions import NotFoundError, ValidationError
from ...models.hospitality.daily_rates import DailyRate
from ...models.hospitality.rate_periods import RatePeriod
from ...schemas.hospitality.rates_schemas import (
    RatePeriodCreate, RatePeriodUpdate, RoomTypeRates, SetDailyRateRequest
)
from .rate_calculator import each_day, get_room_types

logger = logging.getLogger(__name__)


def _check_date_range(start_date: Optional[date], end_date: Optional[date]):
    if start_date and end_date and end_date < start_date:
        raise ValidationError("end_date must not be before start_date")


# ----------------- Get All Rate Periods -----------------
def get_rate_periods(db: Session, ctx: TenantContext, room_type_id: Optional[UUID] = None) -> List[RatePeriod]:
    query = db.query(RatePeriod).filter(
        RatePeriod.tenant_id == ctx.tenant_id,
        RatePeriod.property_id == ctx.property_id
    )
    if room_type_id:
        query = query.filter(RatePeriod.room_type_id == room_type_id)
    return query.order_by(RatePeriod.priority.desc(), RatePeriod.name.asc()).all()


def get_rate_period(db: Session, ctx: TenantContext, rate_period_id: UUID) -> RatePeriod:
    period = db.query(RatePeriod).filter(
        RatePeriod.id == rate_period_id,
        RatePeriod.tenant_id == ctx.tenant_id,
        RatePeriod.property_id == ctx.property_id
    ).first()
    if not period:
        raise NotFoundError("Rate period not found")
    return period


# ----------------- Create Rate Period -----------------
def create_rate_period(db: Session, ctx: TenantContext, payload: RatePeriodCreate) -> RatePeriod:
    _check_date_range(payload.start_date, payload.end_date)
    if payload.room_type_id:
        get_room_types(db, ctx, payload.room_type_id)

    period = RatePeriod(
        tenant_id=ctx.tenant_id,
        property_id=ctx.property_id,
        **payload.model_dump(exclude={"rate_type", "adjustment_type"}),
        rate_type=payload.rate_type.value,
        adjustment_type=payload.adjustment_type.value,
    )
    db.add(period)
    commit_or_raise(db, "rate period")
    db.refresh(period)
    return period


# ----------------- Update Rate Period -----------------
def update_rate_period(db: Session, ctx: TenantContext, payload: RatePeriodUpdate) -> RatePeriod:
    period = get_rate_period(db, ctx, payload.id)

    update_data = payload.model_dump(exclude_unset=True, exclude={"id"})
    if update_data.get("room_type_id"):
        get_room_types(db, ctx, update_data["room_type_id"])
    _check_date_range(
        update_data.get("start_date", period.start_date),
        update_data.get("end_date", period.end_date))

    for key, value in update_data.items():
        if key in ("rate_type", "adjustment_type") and value is not None:
            value = value.value
        setattr(period, key, value)

    commit_or_raise(db, "rate period")
    db.refresh(period)
    return period


def toggle_rate_period(db: Session, ctx: TenantContext, rate_period_id: UUID, is_active: bool) -> RatePeriod:
    period = get_rate_period(db, ctx, rate_period_id)
    period.is_active = is_active
    commit_or_raise(db, "rate period")
    db.refresh(period)
    return period


# ----------------- Delete Rate Period -----------------
def delete_rate_period(db: Session, ctx: TenantContext, rate_period_id: UUID) -> bool:
    period = get_rate_period(db, ctx, rate_period_id)

    # daily rates keep their value, they just lose the link
    db.query(DailyRate).filter(DailyRate.rate_period_id == period.id).update(
        {DailyRate.rate_period_id: None}, synchronize_session=False)
    db.delete(period)
    commit_or_raise(db, "rate period")
    return True


# ----------------- Daily rates -----------------
def set_daily_rate(db: Session, ctx: TenantContext, payload: SetDailyRateRequest) -> DailyRate:
    get_room_types(db, ctx, payload.room_type_id)

    row = db.query(DailyRate).filter(
        DailyRate.property_id == ctx.property_id,
        DailyRate.room_type_id == payload.room_type_id,
        DailyRate.date == payload.date
    ).first()

    if row is None:
        row = DailyRate(
            tenant_id=ctx.tenant_id,
            property_id=ctx.property_id,
            room_type_id=payload.room_type_id,
            date=payload.date,
        )
        db.add(row)

    row.calculated_rate = money(payload.rate)
    row.rate_period_id = None
    row.is_manual_override = payload.is_manual_override

    commit_or_raise(db, "daily rate")
    db.refresh(row)
    logger.info("Daily rate for %s on %s set to %s (manual=%s)",
                payload.room_type_id, payload.date, row.calculated_rate, row.is_manual_override)
    return row


def clear_manual_override(db: Session, ctx: TenantContext, room_type_id: UUID, day: date) -> bool:
    """Drop the manual row so the next recalculation owns the date again."""
    row = db.query(DailyRate).filter(
        DailyRate.property_id == ctx.property_id,
        DailyRate.room_type_id == room_type_id,
        DailyRate.date == day,
        DailyRate.is_manual_override == True
    ).first()
    if not row:
        raise NotFoundError("No manual rate for this date")

    db.delete(row)
    commit_or_raise(db, "daily rate")
    return True


def get_daily_rates_grid(db: Session, ctx: TenantContext, start_date: date, end_date: date) -> List[RoomTypeRates]:
    _check_date_range(start_date, end_date)
    room_types = get_room_types(db, ctx)

    rows = db.query(DailyRate).filter(
        DailyRate.property_id == ctx.property_id,
        DailyRate.date >= start_date,
        DailyRate.date <= end_date
    ).all()
    by_key = {(row.room_type_id, row.date): row for row in rows}

    results = []
    for room_type in room_types:
        rates = {}
        overrides = {}
        for day in each_day(start_date, end_date):
            row = by_key.get((room_type.id, day))
            key = day.isoformat()
            rates[key] = money(row.calculated_rate if row else room_type.base_rate)
            overrides[key] = bool(row.is_manual_override) if row else False

        results.append(RoomTypeRates(
            id=room_type.id,
            name=room_type.name,
            base_rate=money(room_type.base_rate),
            rates=rates,
            overrides=overrides,
        ))
    return results
