from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

import backend.main as main_module
from backend.app.config import Settings
from backend.app.errors import UpstreamError
from backend.app.services import youtube_api


class FakeYouTube:
    """
    Stands in for youtube_api_get. Detail and channel lookups answer in
    reverse order so tests can check the merge keeps search order.
    """

    def __init__(self):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.search_pages: dict[str | None, dict[str, Any]] = {}
        self.videos: dict[str, dict[str, Any]] = {}
        self.channels: dict[str, dict[str, Any]] = {}
        self.failures: dict[str, UpstreamError] = {}

    def __call__(self, url, params, error_cls=UpstreamError, timeout=None):
        self.calls.append((url, dict(params)))
        failure = self.failures.get(url)
        if failure is not None:
            raise failure

        if url == youtube_api.YOUTUBE_SEARCH_LIST:
            return self.search_pages.get(
                params.get("pageToken"),
                {"items": [], "pageInfo": {"totalResults": 0}},
            )
        if url == youtube_api.YOUTUBE_VIDEOS_LIST:
            ids = params["id"].split(",")
            return {"items": [self.videos[i] for i in reversed(ids) if i in self.videos]}
        if url == youtube_api.YOUTUBE_CHANNELS_LIST:
            ids = params["id"].split(",")
            return {"items": [self.channels[i] for i in reversed(ids) if i in self.channels]}
        raise AssertionError(f"unexpected url {url}")

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]

    def add_search_page(
        self,
        video_ids: list[str],
        token: str | None = None,
        next_token: str | None = None,
        total: int | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "items": [{"id": {"kind": "youtube#video", "videoId": vid}} for vid in video_ids],
            "pageInfo": {"totalResults": total if total is not None else len(video_ids) * 10},
        }
        if next_token:
            payload["nextPageToken"] = next_token
        self.search_pages[token] = payload

    def add_video(
        self,
        video_id: str,
        channel_id: str = "UC_default",
        views: int = 1000,
        duration: str = "PT3M",
        days_ago: int = 3,
    ) -> None:
        published_at = (datetime.now(timezone.utc) - timedelta(days=days_ago)).isoformat().replace("+00:00", "Z")
        self.videos[video_id] = {
            "id": video_id,
            "snippet": {
                "title": f"Video {video_id}",
                "channelId": channel_id,
                "channelTitle": f"Channel {channel_id}",
                "publishedAt": published_at,
                "thumbnails": {
                    "default": {"url": f"https://img/{video_id}/default.jpg"},
                    "medium": {"url": f"https://img/{video_id}/medium.jpg"},
                },
            },
            "statistics": {"viewCount": str(views)},
            "contentDetails": {"duration": duration},
        }

    def add_channel(self, channel_id: str, subscribers: int | None, hidden: bool = False) -> None:
        stats: dict[str, Any] = {"hiddenSubscriberCount": hidden}
        if subscribers is not None:
            stats["subscriberCount"] = str(subscribers)
        self.channels[channel_id] = {"id": channel_id, "statistics": stats}


@pytest.fixture(autouse=True)
def youtube_settings(monkeypatch):
    settings = Settings(youtube_api_key="test-key", gemini_api_key=None)
    monkeypatch.setattr(youtube_api, "get_settings", lambda: settings)
    return settings


@pytest.fixture
def fake_youtube(monkeypatch):
    fake = FakeYouTube()
    monkeypatch.setattr(youtube_api, "youtube_api_get", fake)
    return fake


@pytest.fixture(autouse=True)
def reset_sessions():
    main_module.SESSIONS.clear()
    yield
    main_module.SESSIONS.clear()
