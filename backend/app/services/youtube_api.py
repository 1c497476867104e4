import logging
import time
from datetime import datetime
from typing import Any, NamedTuple

import requests

from backend.app.config import get_settings
from backend.app.errors import (
    MissingAPIKeyError,
    UpstreamChannelError,
    UpstreamDetailError,
    UpstreamError,
    UpstreamSearchError,
    quota_error_for,
)
from backend.app.services.date_windows import to_rfc3339

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_LIST = "https://www.googleapis.com/youtube/v3/search"
YOUTUBE_VIDEOS_LIST = "https://www.googleapis.com/youtube/v3/videos"
YOUTUBE_CHANNELS_LIST = "https://www.googleapis.com/youtube/v3/channels"

SEARCH_PAGE_SIZE = 50
QUOTA_REASONS = {"quotaexceeded", "dailylimitexceeded", "ratelimitexceeded"}

# Local duration class -> search.list videoDuration bucket.
# The API "short" bucket is anything under 4 minutes; the filter engine narrows it to 60s.
VIDEO_DURATION_BUCKETS = {
    "short": "short",
    "long": "long",
}


class SearchHits(NamedTuple):
    video_ids: list[str]
    next_token: str | None
    total_estimate: int


def _error_reason(response: requests.Response) -> tuple[str, str]:
    reason = ""
    message = response.text
    try:
        payload = response.json()
        error = payload.get("error") or {}
        errors = error.get("errors") or []
        if errors and isinstance(errors[0], dict):
            reason = str(errors[0].get("reason") or "")
        message = str(error.get("message") or message)
    except (ValueError, AttributeError):
        pass
    return reason, message


def youtube_api_get(
    url: str,
    params: dict[str, Any],
    error_cls: type[UpstreamError] = UpstreamError,
    timeout: int | None = None,
) -> dict[str, Any]:
    settings = get_settings()
    api_key = settings.youtube_api_key
    if not api_key:
        raise MissingAPIKeyError("Missing YOUTUBE_API_KEY in backend/.env")

    merged = params.copy()
    merged["key"] = api_key
    try:
        response = requests.get(url, params=merged, timeout=timeout or settings.youtube_api_timeout)
    except requests.RequestException as exc:
        logger.warning("YouTube %s request failed: %s", error_cls.stage, exc)
        raise error_cls(f"YouTube {error_cls.stage} request failed: {exc}") from exc

    if response.status_code == 200:
        try:
            return response.json()
        except ValueError as exc:
            raise error_cls(f"YouTube {error_cls.stage} returned invalid JSON") from exc

    reason, message = _error_reason(response)
    lowered = f"{reason} {message}".lower()
    logger.warning(
        "YouTube %s responded %s reason=%s",
        error_cls.stage,
        response.status_code,
        reason or "unknown",
    )
    if response.status_code in {403, 429} and (
        reason.lower() in QUOTA_REASONS or "quota exceeded" in lowered or "quotaexceeded" in lowered
    ):
        raise quota_error_for(error_cls)(
            "YouTube API quota exceeded",
            status_code=response.status_code,
            reason=reason,
        )

    raise error_cls(
        f"YouTube {error_cls.stage} failed ({response.status_code}): {message}",
        status_code=response.status_code,
        reason=reason,
    )


def search_video_ids(
    query: str,
    region_code: str,
    duration_class: str = "any",
    published_after: datetime | None = None,
    page_token: str | None = None,
) -> SearchHits:
    params = {
        "part": "snippet",
        "type": "video",
        "q": query,
        "maxResults": SEARCH_PAGE_SIZE,
        "regionCode": region_code,
        "videoDuration": VIDEO_DURATION_BUCKETS.get(duration_class, "any"),
    }
    if published_after is not None:
        params["publishedAfter"] = to_rfc3339(published_after)
    if page_token:
        params["pageToken"] = page_token

    started = time.monotonic()
    payload = youtube_api_get(YOUTUBE_SEARCH_LIST, params, UpstreamSearchError)

    video_ids = []
    for item in payload.get("items", []):
        vid = (item.get("id") or {}).get("videoId")
        if vid:
            video_ids.append(vid)

    total = (payload.get("pageInfo") or {}).get("totalResults") or 0
    try:
        total = int(total)
    except (TypeError, ValueError):
        total = 0

    logger.debug(
        "search.list q=%r region=%s -> %d ids in %.2fs",
        query,
        region_code,
        len(video_ids),
        time.monotonic() - started,
    )
    return SearchHits(video_ids, payload.get("nextPageToken") or None, total)


def fetch_video_details(video_ids: list[str]) -> list[dict[str, Any]]:
    if not video_ids:
        return []
    started = time.monotonic()
    payload = youtube_api_get(
        YOUTUBE_VIDEOS_LIST,
        {
            "part": "statistics,contentDetails,snippet",
            "id": ",".join(video_ids),
        },
        UpstreamDetailError,
    )
    items = payload.get("items", [])
    logger.debug("videos.list %d ids -> %d items in %.2fs", len(video_ids), len(items), time.monotonic() - started)
    return items


def fetch_channel_subscribers(channel_ids: list[str]) -> dict[str, int]:
    """
    Subscriber count per channel id. Hidden or missing counts resolve to 0.
    """
    if not channel_ids:
        return {}
    started = time.monotonic()
    payload = youtube_api_get(
        YOUTUBE_CHANNELS_LIST,
        {
            "part": "statistics",
            "id": ",".join(channel_ids),
        },
        UpstreamChannelError,
    )

    subscribers: dict[str, int] = {}
    for item in payload.get("items", []):
        channel_id = item.get("id")
        if not channel_id:
            continue
        stats = item.get("statistics") or {}
        if stats.get("hiddenSubscriberCount"):
            subscribers[channel_id] = 0
            continue
        subscribers[channel_id] = safe_int(stats.get("subscriberCount"))

    logger.debug(
        "channels.list %d ids -> %d items in %.2fs",
        len(channel_ids),
        len(subscribers),
        time.monotonic() - started,
    )
    return subscribers


def safe_int(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0
