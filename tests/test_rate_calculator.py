import uuid
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

from folio_service.app.core.exceptions import NotFoundError, ValidationError
from folio_service.app.crud.hospitality import rate_periods_crud
from folio_service.app.crud.hospitality.rate_calculator import (
    calculate_rates_for_period, get_nightly_rate, resolve_rate, weekday_index
)
from folio_service.app.models.hospitality.daily_rates import DailyRate
from folio_service.app.models.hospitality.rate_periods import RatePeriod
from folio_service.app.schemas.hospitality.rates_schemas import (
    RatePeriodCreate, RatePeriodUpdate, SetDailyRateRequest
)

FRIDAY = date(2024, 5, 31)
SATURDAY = date(2024, 6, 1)
SUNDAY = date(2024, 6, 2)
ROOM_TYPE = uuid.uuid4()


def make_period(amount, adjustment_type="percentage", days_of_week=None, priority=0,
                room_type_id=None, start_date=None, end_date=None, is_active=True):
    return RatePeriod(
        id=uuid.uuid4(),
        name=f"{adjustment_type} {amount}",
        rate_type="seasonal",
        amount=Decimal(str(amount)),
        adjustment_type=adjustment_type,
        days_of_week=days_of_week,
        priority=priority,
        room_type_id=room_type_id,
        start_date=start_date,
        end_date=end_date,
        is_active=is_active,
    )


def test_weekday_index_counts_from_sunday():
    assert weekday_index(SUNDAY) == 0
    assert weekday_index(FRIDAY) == 5
    assert weekday_index(SATURDAY) == 6


def test_weekend_percentage_applies_only_on_its_days():
    weekend = make_period(20, days_of_week=[6])

    saturday_rate, saturday_period = resolve_rate(Decimal("2000"), [weekend], ROOM_TYPE, SATURDAY)
    friday_rate, friday_period = resolve_rate(Decimal("2000"), [weekend], ROOM_TYPE, FRIDAY)

    assert saturday_rate == Decimal("2400.00")
    assert saturday_period is weekend
    assert friday_rate == Decimal("2000.00")
    assert friday_period is None


def test_override_and_fixed_adjustments():
    override = make_period(1500, adjustment_type="override")
    fixed = make_period(250, adjustment_type="fixed")

    assert resolve_rate(Decimal("2000"), [override], ROOM_TYPE, FRIDAY)[0] == Decimal("1500.00")
    assert resolve_rate(Decimal("2000"), [fixed], ROOM_TYPE, FRIDAY)[0] == Decimal("2250.00")


def test_highest_priority_period_wins():
    low = make_period(10, priority=1)
    high = make_period(3000, adjustment_type="override", priority=5)

    rate, period = resolve_rate(Decimal("2000"), [low, high], ROOM_TYPE, FRIDAY)

    assert rate == Decimal("3000.00")
    assert period is high


def test_date_range_is_inclusive_and_room_type_scoped():
    season = make_period(50, start_date=FRIDAY, end_date=SATURDAY)
    other_room = make_period(1000, adjustment_type="override", priority=9, room_type_id=uuid.uuid4())
    inactive = make_period(1, adjustment_type="override", priority=10, is_active=False)

    periods = [season, other_room, inactive]
    assert resolve_rate(Decimal("2000"), periods, ROOM_TYPE, FRIDAY)[0] == Decimal("3000.00")
    assert resolve_rate(Decimal("2000"), periods, ROOM_TYPE, SATURDAY)[0] == Decimal("3000.00")
    assert resolve_rate(Decimal("2000"), periods, ROOM_TYPE, SUNDAY)[0] == Decimal("2000.00")


def _add_weekend_period(db, ctx):
    return rate_periods_crud.create_rate_period(db, ctx, RatePeriodCreate(
        name="Weekend", rate_type="weekend", amount=Decimal("20"),
        adjustment_type="percentage", days_of_week=[6], priority=10))


def test_calculate_rates_materializes_every_room_type_and_day(db, ctx, hotel):
    _add_weekend_period(db, ctx)

    written = calculate_rates_for_period(db, ctx, FRIDAY, SATURDAY)

    rows = db.query(DailyRate).all()
    rates = {(r.room_type_id, r.date): r.calculated_rate for r in rows}
    assert written == 4
    assert len(rows) == 4
    assert rates[(hotel.standard.id, FRIDAY)] == Decimal("2000.00")
    assert rates[(hotel.standard.id, SATURDAY)] == Decimal("2400.00")
    assert rates[(hotel.deluxe.id, SATURDAY)] == Decimal("3600.00")


def test_recalculation_updates_rows_and_keeps_manual_overrides(db, ctx, hotel):
    calculate_rates_for_period(db, ctx, FRIDAY, SATURDAY)
    rate_periods_crud.set_daily_rate(db, ctx, SetDailyRateRequest(
        room_type_id=hotel.standard.id, date=SATURDAY, rate=Decimal("1800")))
    _add_weekend_period(db, ctx)

    written = calculate_rates_for_period(db, ctx, FRIDAY, SATURDAY)

    assert written == 3
    assert db.query(DailyRate).count() == 4
    manual = db.query(DailyRate).filter(
        DailyRate.room_type_id == hotel.standard.id, DailyRate.date == SATURDAY).one()
    assert manual.is_manual_override is True
    assert manual.calculated_rate == Decimal("1800.00")
    deluxe = db.query(DailyRate).filter(
        DailyRate.room_type_id == hotel.deluxe.id, DailyRate.date == SATURDAY).one()
    assert deluxe.calculated_rate == Decimal("3600.00")


def test_calculate_rates_rejects_inverted_range(db, ctx, hotel):
    with pytest.raises(ValidationError):
        calculate_rates_for_period(db, ctx, SATURDAY, FRIDAY)


def test_calculate_rates_for_unknown_room_type(db, ctx, hotel):
    with pytest.raises(NotFoundError):
        calculate_rates_for_period(db, ctx, FRIDAY, SATURDAY, room_type_id=uuid.uuid4())


def test_nightly_rate_prefers_materialized_row(db, ctx, hotel):
    _add_weekend_period(db, ctx)

    assert get_nightly_rate(db, ctx, hotel.standard.id, SATURDAY) == Decimal("2400.00")

    rate_periods_crud.set_daily_rate(db, ctx, SetDailyRateRequest(
        room_type_id=hotel.standard.id, date=SATURDAY, rate=Decimal("1750")))

    assert get_nightly_rate(db, ctx, hotel.standard.id, SATURDAY) == Decimal("1750.00")


def test_daily_grid_falls_back_to_base_rate(db, ctx, hotel):
    rate_periods_crud.set_daily_rate(db, ctx, SetDailyRateRequest(
        room_type_id=hotel.deluxe.id, date=FRIDAY, rate=Decimal("2500")))

    grid = {row.name: row for row in rate_periods_crud.get_daily_rates_grid(db, ctx, FRIDAY, SATURDAY)}

    assert grid["Deluxe"].rates[FRIDAY.isoformat()] == Decimal("2500.00")
    assert grid["Deluxe"].overrides[FRIDAY.isoformat()] is True
    assert grid["Deluxe"].rates[SATURDAY.isoformat()] == Decimal("3000.00")
    assert grid["Standard"].overrides[SATURDAY.isoformat()] is False


def test_clearing_a_manual_override(db, ctx, hotel):
    rate_periods_crud.set_daily_rate(db, ctx, SetDailyRateRequest(
        room_type_id=hotel.standard.id, date=FRIDAY, rate=Decimal("1900")))

    assert rate_periods_crud.clear_manual_override(db, ctx, hotel.standard.id, FRIDAY) is True
    assert db.query(DailyRate).count() == 0
    with pytest.raises(NotFoundError):
        rate_periods_crud.clear_manual_override(db, ctx, hotel.standard.id, FRIDAY)


def test_deleting_a_period_keeps_materialized_rates(db, ctx, hotel):
    period = _add_weekend_period(db, ctx)
    calculate_rates_for_period(db, ctx, SATURDAY, SATURDAY)

    rate_periods_crud.delete_rate_period(db, ctx, period.id)

    rows = db.query(DailyRate).all()
    assert len(rows) == 2
    assert all(row.rate_period_id is None for row in rows)


def test_days_of_week_are_checked_on_update():
    with pytest.raises(SchemaValidationError):
        RatePeriodUpdate(id=uuid.uuid4(), days_of_week=[9, -3])
    with pytest.raises(SchemaValidationError):
        RatePeriodCreate(name="Bad", rate_type="weekend", amount=Decimal("10"),
                         adjustment_type="fixed", days_of_week=[7])

    assert RatePeriodUpdate(id=uuid.uuid4(), days_of_week=[0, 6]).days_of_week == [0, 6]


def test_update_rate_period_checks_room_type_and_dates(db, ctx, hotel):
    period = _add_weekend_period(db, ctx)

    with pytest.raises(NotFoundError):
        rate_periods_crud.update_rate_period(db, ctx, RatePeriodUpdate(
            id=period.id, room_type_id=uuid.uuid4()))
    with pytest.raises(ValidationError):
        rate_periods_crud.update_rate_period(db, ctx, RatePeriodUpdate(
            id=period.id, start_date=SUNDAY, end_date=SATURDAY))

    updated = rate_periods_crud.update_rate_period(db, ctx, RatePeriodUpdate(
        id=period.id, room_type_id=hotel.deluxe.id, days_of_week=[0, 6]))
    assert updated.room_type_id == hotel.deluxe.id
    assert updated.days_of_week == [0, 6]
