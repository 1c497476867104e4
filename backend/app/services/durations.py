import re

ISO8601_DURATION_RE = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$"
)
SHORT_FORM_MAX_SECONDS = 60


def iso8601_duration_to_seconds(duration: str | None) -> int:
    match = ISO8601_DURATION_RE.match((duration or "").strip().upper())
    if not match:
        return 0
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def is_short_form(duration: str | None) -> bool:
    return iso8601_duration_to_seconds(duration) <= SHORT_FORM_MAX_SECONDS


def format_duration(duration: str | None) -> str:
    """PT1H2M3S -> 1:02:03, PT4M5S -> 4:05."""
    total = iso8601_duration_to_seconds(duration)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"
