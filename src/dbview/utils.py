from datetime import UTC, date, datetime, timedelta

# Formats tried after ISO-8601 parsing fails
DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y/%m/%d",
    "%m/%d/%Y",
]


def now() -> datetime:
    return datetime.now(UTC)


def parse_datetime(value: str) -> datetime | None:
    """Parse a date/datetime string, returning None when no known format matches."""
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)  # noqa: DTZ007
        except ValueError:
            continue
    return None


def to_epoch_ms(value: datetime | date) -> int:
    """Convert a datetime or date to UTC epoch milliseconds. Naive values are taken as UTC."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int | float) -> datetime:
    return datetime.fromtimestamp(value / 1000, UTC)


def utc_day(epoch_ms: int | float) -> date:
    """Calendar day (UTC) of an epoch instant."""
    return from_epoch_ms(epoch_ms).date()


def week_start(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())


def month_key(day: date) -> tuple[int, int]:
    return day.year, day.month


def shift_month(day: date, months: int) -> tuple[int, int]:
    """(year, month) of the month `months` away from day's month."""
    index = day.year * 12 + (day.month - 1) + months
    return index // 12, index % 12 + 1
