from .properties import Property
from .room_types import RoomType
from .corporate_accounts import CorporateAccount
from .guests import Guest
from .reservations import Reservation
from .rate_periods import RatePeriod
from .daily_rates import DailyRate
