import logging
import time
from datetime import datetime
from typing import Any

from backend.app.models import SearchCriteria, SearchPage, VideoRecord
from backend.app.services import youtube_api
from backend.app.services.date_windows import published_after
from backend.app.services.filters import apply_filters
from backend.app.services.locales import resolve_locale

logger = logging.getLogger(__name__)

THUMBNAIL_PREFERENCE = ("medium", "default", "high", "standard", "maxres")


def parse_iso8601_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def pick_thumbnail_url(thumbnails: dict) -> str | None:
    for key in THUMBNAIL_PREFERENCE:
        t = thumbnails.get(key)
        if t and t.get("url"):
            return t["url"]
    for t in thumbnails.values():
        if isinstance(t, dict) and t.get("url"):
            return t["url"]
    return None


def unique_channel_ids(videos: list[dict[str, Any]]) -> list[str]:
    seen: set[str] = set()
    channel_ids = []
    for v in videos:
        channel_id = (v.get("snippet") or {}).get("channelId")
        if not channel_id or channel_id in seen:
            continue
        seen.add(channel_id)
        channel_ids.append(channel_id)
    return channel_ids


def build_record(video: dict[str, Any], subscribers: dict[str, int]) -> VideoRecord:
    snip = video.get("snippet") or {}
    stats = video.get("statistics") or {}
    details = video.get("contentDetails") or {}
    channel_id = snip.get("channelId") or ""
    return VideoRecord(
        id=video["id"],
        title=snip.get("title") or "",
        channel_title=snip.get("channelTitle") or "",
        channel_id=channel_id,
        thumbnail_url=pick_thumbnail_url(snip.get("thumbnails") or {}),
        published_at=parse_iso8601_datetime(snip.get("publishedAt")),
        duration=details.get("duration") or "",
        view_count=youtube_api.safe_int(stats.get("viewCount")),
        subscriber_count=subscribers.get(channel_id, 0),
    )


def merge_records(
    video_ids: list[str],
    videos: list[dict[str, Any]],
    subscribers: dict[str, int],
) -> list[VideoRecord]:
    """
    Records come out in search relevance order (video_ids), whatever order
    the detail lookup answered in. Ids the detail lookup dropped are skipped.
    """
    by_id = {v["id"]: v for v in videos if v.get("id")}
    records = []
    seen: set[str] = set()
    for vid in video_ids:
        if vid in seen or vid not in by_id:
            continue
        seen.add(vid)
        records.append(build_record(by_id[vid], subscribers))
    return records


def fetch_page(
    criteria: SearchCriteria,
    translated_keyword: str,
    continuation_token: str | None = None,
) -> SearchPage:
    started = time.monotonic()
    locale = resolve_locale(criteria.country)

    hits = youtube_api.search_video_ids(
        translated_keyword,
        locale.region_code,
        duration_class=criteria.duration,
        published_after=published_after(criteria.date_range),
        page_token=continuation_token or None,
    )
    if not hits.video_ids:
        logger.info("No search results for %r in %s", translated_keyword, locale.region_code)
        return SearchPage(records=[], next_token=None, total_estimate=0)

    videos = youtube_api.fetch_video_details(hits.video_ids)
    subscribers = youtube_api.fetch_channel_subscribers(unique_channel_ids(videos))
    records = merge_records(hits.video_ids, videos, subscribers)

    logger.info(
        "Fetched %d records for %r in %s (estimate %d) in %.2fs",
        len(records),
        translated_keyword,
        locale.region_code,
        hits.total_estimate,
        time.monotonic() - started,
    )
    return SearchPage(
        records=records,
        next_token=hits.next_token,
        total_estimate=hits.total_estimate,
    )


def search(
    criteria: SearchCriteria,
    translated_keyword: str,
    continuation_token: str | None = None,
) -> SearchPage:
    page = fetch_page(criteria, translated_keyword, continuation_token)
    filtered = apply_filters(page.records, criteria)
    if len(filtered) != len(page.records):
        logger.debug("Filters removed %d of %d records", len(page.records) - len(filtered), len(page.records))
    return page.model_copy(update={"records": filtered})
