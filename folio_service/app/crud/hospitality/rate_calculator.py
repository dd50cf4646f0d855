import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Iterator, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.schemas import TenantContext
from shared.utils.money import money, to_decimal
from ...core.databases import commit_or_raise
from ...core.exceptions import NotFoundError, ValidationError
from ...enum.hospitality_enum import RateAdjustmentType
from ...models.hospitality.daily_rates import DailyRate
from ...models.hospitality.rate_periods import RatePeriod
from ...models.hospitality.room_types import RoomType

logger = logging.getLogger(__name__)


def weekday_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def each_day(start_date: date, end_date: date) -> Iterator[date]:
    day = start_date
    while day <= end_date:
        yield day
        day += timedelta(days=1)


def period_matches(period: RatePeriod, room_type_id: UUID, day: date) -> bool:
    if not period.is_active:
        return False
    if period.room_type_id is not None and period.room_type_id != room_type_id:
        return False
    if period.start_date and day < period.start_date:
        return False
    if period.end_date and day > period.end_date:
        return False
    if period.days_of_week and weekday_index(day) not in period.days_of_week:
        return False
    return True


def apply_adjustment(base_rate, period: RatePeriod) -> Decimal:
    base_rate = to_decimal(base_rate)
    amount = to_decimal(period.amount)
    adjustment = RateAdjustmentType(period.adjustment_type)

    if adjustment == RateAdjustmentType.override:
        return money(amount)
    if adjustment == RateAdjustmentType.fixed:
        return money(base_rate + amount)
    return money(base_rate * (1 + amount / Decimal("100")))


def resolve_rate(
    base_rate,
    periods: Iterable[RatePeriod],
    room_type_id: UUID,
    day: date,
) -> Tuple[Decimal, Optional[RatePeriod]]:
    """The highest priority matching period wins; no match means the base rate."""
    matches = sorted(
        (p for p in periods if period_matches(p, room_type_id, day)),
        key=lambda p: p.priority or 0,
        reverse=True,
    )
    if not matches:
        return money(base_rate), None

    winner = matches[0]
    return apply_adjustment(base_rate, winner), winner


# ----------------- Property scoped -----------------
def get_room_types(db: Session, ctx: TenantContext, room_type_id: Optional[UUID] = None) -> List[RoomType]:
    query = db.query(RoomType).filter(
        RoomType.tenant_id == ctx.tenant_id,
        RoomType.property_id == ctx.property_id
    )
    if room_type_id:
        query = query.filter(RoomType.id == room_type_id)
    room_types = query.order_by(RoomType.name.asc()).all()

    if room_type_id and not room_types:
        raise NotFoundError("Room type not found")
    return room_types


def get_active_rate_periods(db: Session, ctx: TenantContext) -> List[RatePeriod]:
    return db.query(RatePeriod).filter(
        RatePeriod.tenant_id == ctx.tenant_id,
        RatePeriod.property_id == ctx.property_id,
        RatePeriod.is_active == True
    ).all()


def calculate_rates_for_period(
    db: Session,
    ctx: TenantContext,
    start_date: date,
    end_date: date,
    room_type_id: Optional[UUID] = None,
) -> int:
    """
    Materialize the resolved nightly rate of every room type (or one) for every day in
    [start_date, end_date] into daily_rates. Rows flagged is_manual_override are left
    untouched and not counted. Returns the number of rows written.
    """
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    room_types = get_room_types(db, ctx, room_type_id)
    periods = get_active_rate_periods(db, ctx)

    existing_rows = db.query(DailyRate).filter(
        DailyRate.property_id == ctx.property_id,
        DailyRate.room_type_id.in_([rt.id for rt in room_types]),
        DailyRate.date >= start_date,
        DailyRate.date <= end_date
    ).all()
    existing = {(row.room_type_id, row.date): row for row in existing_rows}

    written = 0
    skipped_manual = 0
    for room_type in room_types:
        for day in each_day(start_date, end_date):
            rate, period = resolve_rate(room_type.base_rate, periods, room_type.id, day)
            row = existing.get((room_type.id, day))

            if row is not None and row.is_manual_override:
                skipped_manual += 1
                continue

            if row is None:
                row = DailyRate(
                    tenant_id=ctx.tenant_id,
                    property_id=ctx.property_id,
                    room_type_id=room_type.id,
                    date=day,
                    is_manual_override=False,
                )
                db.add(row)
                existing[(room_type.id, day)] = row

            row.calculated_rate = rate
            row.rate_period_id = period.id if period else None
            written += 1

    commit_or_raise(db, "daily rates")
    logger.info(
        "Calculated %s daily rates for %s..%s (%s manual overrides kept)",
        written, start_date, end_date, skipped_manual)
    return written


def get_nightly_rate(db: Session, ctx: TenantContext, room_type_id: UUID, day: date) -> Decimal:
    """Materialized daily rate when there is one, otherwise a live resolution."""
    row = db.query(DailyRate).filter(
        DailyRate.property_id == ctx.property_id,
        DailyRate.room_type_id == room_type_id,
        DailyRate.date == day
    ).first()
    if row is not None:
        return money(row.calculated_rate)

    room_type = get_room_types(db, ctx, room_type_id)[0]
    rate, _ = resolve_rate(room_type.base_rate, get_active_rate_periods(db, ctx), room_type.id, day)
    return rate
