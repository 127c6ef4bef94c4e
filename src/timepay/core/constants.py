"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_BUSINESS_TIMEZONE = "Asia/Jakarta"

# Day-of-week numbering: 0 = Sunday .. 6 = Saturday.
NON_WORKING_WEEKDAY = 1
WEEKEND_DAYS = frozenset({0, 1, 6})

STANDARD_MONTHLY_HOURS = Decimal("173")
STANDARD_DAILY_HOURS = Decimal("8")

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_GRACE_PERIOD_MINUTES = 15
DEFAULT_ROUNDING_INTERVAL_MINUTES = 15
DEFAULT_MINIMUM_HOURS = 4

UNLIMITED_LEAVE_BALANCE = Decimal("999")
CARRYOVER_MONTH = 1
CARRYOVER_REFERENCE_MONTH = 12

DEFAULT_HEALTH_CONTRIBUTION_RATE = Decimal("5")
DEFAULT_EMPLOYMENT_CONTRIBUTION_RATE = Decimal("2")

OUTSIDE_SCHEDULE_CLOCK_IN_NOTE = "Clock-in outside scheduled shift (overtime)"
OUTSIDE_SCHEDULE_CLOCK_OUT_NOTE = "Clock-out outside scheduled shift (overtime)"

