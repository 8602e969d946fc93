import calendar
from datetime import date, datetime
from typing import Optional

from ledger import config

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def today_iso(today: Optional[str] = None) -> str:
    return today or date.today().isoformat()


def current_month_key(today: Optional[str] = None) -> str:
    return today_iso(today)[:7]


def is_same_month(date_iso: str, month_key: str) -> bool:
    return date_iso[:7] == month_key


def parse_month_key(month_key: str) -> tuple[int, int]:
    year, month = month_key.split("-")
    return int(year), int(month)


def days_in_month(month_key: str) -> int:
    year, month = parse_month_key(month_key)
    return calendar.monthrange(year, month)[1]


def day_of_month(date_iso: str) -> int:
    return int(date_iso[8:10])


def month_day(month_key: str, day: int) -> str:
    """ISO date for ``day`` of the month, clamped into 1..days_in_month."""
    day = min(max(day, 1), days_in_month(month_key))
    return f"{month_key}-{day:02d}"


def days_until(date_iso: str, today: Optional[str] = None) -> int:
    target = datetime.strptime(date_iso[:10], "%Y-%m-%d").date()
    now = datetime.strptime(today_iso(today), "%Y-%m-%d").date()
    return (target - now).days


def shift_month(month_key: str, delta: int) -> str:
    year, month = parse_month_key(month_key)
    index = year * 12 + (month - 1) + delta
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def previous_month_keys(month_key: str, count: int) -> tuple[str, ...]:
    """The ``count`` months before ``month_key``, oldest first."""
    return tuple(shift_month(month_key, -n) for n in range(count, 0, -1))


def month_label(month_key: str) -> str:
    year, month = parse_month_key(month_key)
    return f"{MONTH_NAMES[month - 1]} {year}"


def format_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}{abs(value):,.2f} {config.CURRENCY}"


def format_date(date_iso: str) -> str:
    return datetime.strptime(date_iso[:10], "%Y-%m-%d").strftime("%d/%m/%Y")


def format_percent(value: float) -> str:
    return f"{value:.0f}%"
