import calendar
import re
from datetime import datetime, timedelta, timezone

from backend.app.errors import InvalidCriteriaError

# token -> (unit, amount)
DATE_RANGE_TOKENS: dict[str, tuple[str, int]] = {
    "1w": ("weeks", 1),
    "2w": ("weeks", 2),
    "1m": ("months", 1),
    "2m": ("months", 2),
    "3m": ("months", 3),
    "6m": ("months", 6),
    "9m": ("months", 9),
    "12m": ("months", 12),
}
UNBOUNDED_TOKENS = {"all", "", "unlimited", "any"}
MAX_RANGE_MONTHS = 120
MAX_RANGE_WEEKS = MAX_RANGE_MONTHS * 52 // 12

HUMAN_RANGE_RE = re.compile(r"^(\d+)\s*(week|weeks|month|months|year|years)$")


def subtract_months(value: datetime, months: int) -> datetime:
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def parse_date_range(token: str | None) -> tuple[str, int] | None:
    """
    Normalise a range token ("1w", "3m", "1 week", "3 months", "1 year")
    to (unit, amount). Returns None for an unbounded range.
    """
    raw = (token or "").strip().lower()
    if raw in UNBOUNDED_TOKENS:
        return None
    if raw in DATE_RANGE_TOKENS:
        return DATE_RANGE_TOKENS[raw]

    match = HUMAN_RANGE_RE.match(raw)
    if match:
        amount = int(match.group(1))
        unit = match.group(2).rstrip("s")
        if unit == "week":
            window = ("weeks", amount)
        elif unit == "month":
            window = ("months", amount)
        else:
            window = ("months", amount * 12)
        limit = MAX_RANGE_WEEKS if window[0] == "weeks" else MAX_RANGE_MONTHS
        if 0 < window[1] <= limit:
            return window

    raise InvalidCriteriaError(f"unsupported date range: {token!r}")


def published_after(token: str | None, now: datetime | None = None) -> datetime | None:
    window = parse_date_range(token)
    if window is None:
        return None

    now = now or datetime.now(timezone.utc)
    unit, amount = window
    if unit == "weeks":
        return now - timedelta(weeks=amount)
    return subtract_months(now, amount)


def to_rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
