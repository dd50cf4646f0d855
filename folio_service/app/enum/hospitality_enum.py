from enum import Enum


class ReservationStatus(str, Enum):

    confirmed = "confirmed"
    checked_in = "checked_in"
    checked_out = "checked_out"
    cancelled = "cancelled"
    no_show = "no_show"


class RatePeriodType(str, Enum):

    weekend = "weekend"
    seasonal = "seasonal"
    event = "event"
    last_minute = "last_minute"
    holiday = "holiday"


class RateAdjustmentType(str, Enum):

    fixed = "fixed"
    percentage = "percentage"
    override = "override"
