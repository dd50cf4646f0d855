from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from ...enum.hospitality_enum import RateAdjustmentType, RatePeriodType


def check_days_of_week(value: Optional[List[int]]) -> Optional[List[int]]:
    if value is not None and any(d < 0 or d > 6 for d in value):
        raise ValueError("days_of_week entries must be 0 (Sunday) to 6 (Saturday)")
    return value


# ----------------- Base -----------------
class RatePeriodBase(BaseModel):
    name: str
    room_type_id: Optional[UUID] = None
    rate_type: RatePeriodType
    amount: Decimal
    adjustment_type: RateAdjustmentType
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Optional[List[int]] = None
    priority: int = 0
    is_active: bool = True

    model_config = {"from_attributes": True}

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, value):
        return check_days_of_week(value)


# ----------------- Create -----------------
class RatePeriodCreate(RatePeriodBase):
    pass


# ----------------- Update -----------------
class RatePeriodUpdate(BaseModel):
    id: UUID
    name: Optional[str] = None
    room_type_id: Optional[UUID] = None
    rate_type: Optional[RatePeriodType] = None
    amount: Optional[Decimal] = None
    adjustment_type: Optional[RateAdjustmentType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Optional[List[int]] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, value):
        return check_days_of_week(value)


# ----------------- Out -----------------
class RatePeriodOut(RatePeriodBase):
    id: UUID
    property_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ----------------- Daily rates -----------------
class CalculateRatesRequest(BaseModel):
    room_type_id: Optional[UUID] = None
    start_date: date
    end_date: date


class CalculateRatesResponse(BaseModel):
    rates_written: int


class SetDailyRateRequest(BaseModel):
    room_type_id: UUID
    date: date
    rate: Decimal = Field(ge=0)
    is_manual_override: bool = True


class DailyRateOut(BaseModel):
    id: UUID
    room_type_id: UUID
    date: date
    calculated_rate: Decimal
    rate_period_id: Optional[UUID] = None
    is_manual_override: bool

    model_config = {"from_attributes": True}


class DailyRateRequest(BaseModel):
    start_date: date
    end_date: date


class RoomTypeRates(BaseModel):
    id: UUID
    name: str
    base_rate: Decimal
    rates: Dict[str, Decimal]       # yyyy-mm-dd -> rate
    overrides: Dict[str, bool]      # yyyy-mm-dd -> is_manual_override
