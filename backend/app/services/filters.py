from backend.app.models import ALL_LEVELS, UNLIMITED, SearchCriteria, VideoRecord
from backend.app.services.durations import SHORT_FORM_MAX_SECONDS, is_short_form, iso8601_duration_to_seconds


def rejection_reason(record: VideoRecord, criteria: SearchCriteria) -> str | None:
    if criteria.duration == "short":
        if not is_short_form(record.duration):
            seconds = iso8601_duration_to_seconds(record.duration)
            return f"duration {seconds}s exceeds {SHORT_FORM_MAX_SECONDS}s"

    if criteria.min_views != UNLIMITED and record.view_count < criteria.min_views:
        return f"views {record.view_count} below {criteria.min_views}"

    if criteria.min_subscribers != UNLIMITED and record.subscriber_count < criteria.min_subscribers:
        return f"subscribers {record.subscriber_count} below {criteria.min_subscribers}"

    if criteria.performance_level != ALL_LEVELS and record.level != criteria.performance_level:
        return f"level {record.level} is not {criteria.performance_level}"

    return None


def apply_filters(records: list[VideoRecord], criteria: SearchCriteria) -> list[VideoRecord]:
    return [record for record in records if rejection_reason(record, criteria) is None]
