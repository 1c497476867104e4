class UpstreamError(Exception):
    stage = "upstream"
    error_code = "youtube_failed"

    def __init__(self, message: str, status_code: int | None = None, reason: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class UpstreamSearchError(UpstreamError):
    stage = "search"
    error_code = "youtube_search_failed"


class UpstreamDetailError(UpstreamError):
    stage = "videos"
    error_code = "youtube_detail_failed"


class UpstreamChannelError(UpstreamError):
    stage = "channels"
    error_code = "youtube_channel_failed"


class YouTubeQuotaExceededError(UpstreamError):
    error_code = "youtube_quota_exhausted"


_QUOTA_ERRORS: dict[type[UpstreamError], type[UpstreamError]] = {}


def quota_error_for(stage_error: type[UpstreamError]) -> type[UpstreamError]:
    """
    Quota failures stay catchable both as the stage error and as
    YouTubeQuotaExceededError.
    """
    hit = _QUOTA_ERRORS.get(stage_error)
    if hit is None:
        hit = type(
            f"{stage_error.__name__}QuotaExceeded",
            (YouTubeQuotaExceededError, stage_error),
            {"stage": stage_error.stage, "error_code": YouTubeQuotaExceededError.error_code},
        )
        _QUOTA_ERRORS[stage_error] = hit
    return hit


class MissingAPIKeyError(RuntimeError):
    pass


class InvalidCriteriaError(ValueError):
    pass


class StaleSearchError(Exception):
    """A newer search started while this invocation was in flight."""


class TranslationUnavailable(Exception):
    """Gemini could not produce a usable translation."""
