from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import backend.main as main_module
from backend.app.models import SearchCriteria
from backend.app.services import youtube_api

SEARCH_PAGES = {
    None: {"ids": ["s1", "s2", "s3"], "next": "PAGE_2"},
    "PAGE_2": {"ids": ["s4"], "next": "PAGE_3"},
}


def make_video(video_id: str, channel_id: str, views: int, duration: str) -> dict:
    published_at = (datetime.now(timezone.utc) - timedelta(days=2)).isoformat().replace("+00:00", "Z")
    return {
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "channelId": channel_id,
            "channelTitle": "Smoke Channel",
            "publishedAt": published_at,
            "thumbnails": {"medium": {"url": f"https://img/{video_id}.jpg"}},
        },
        "statistics": {"viewCount": str(views)},
        "contentDetails": {"duration": duration},
    }


VIDEOS = {
    "s1": make_video("s1", "UC_SMOKE", 15000, "PT45S"),
    "s2": make_video("s2", "UC_SMOKE", 20000, "PT1M30S"),
    "s3": make_video("s3", "UC_SMOKE", 5000, "PT30S"),
    "s4": make_video("s4", "UC_OTHER", 80000, "PT20S"),
}
SUBSCRIBERS = {"UC_SMOKE": 10000, "UC_OTHER": 0}


def fake_youtube_api_get(url: str, params: dict, error_cls=None, timeout: int | None = None) -> dict:
    _ = (error_cls, timeout)
    if url == youtube_api.YOUTUBE_SEARCH_LIST:
        page = SEARCH_PAGES.get(params.get("pageToken"), {"ids": [], "next": None})
        return {
            "items": [{"id": {"videoId": vid}} for vid in page["ids"]],
            "nextPageToken": page["next"],
            "pageInfo": {"totalResults": 4},
        }
    ids = params["id"].split(",")
    if url == youtube_api.YOUTUBE_VIDEOS_LIST:
        return {"items": [VIDEOS[i] for i in ids if i in VIDEOS]}
    return {
        "items": [
            {"id": cid, "statistics": {"subscriberCount": str(SUBSCRIBERS[cid])}}
            for cid in ids
            if cid in SUBSCRIBERS
        ]
    }


def assert_true(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def reset_state() -> None:
    main_module.SESSIONS.clear()


def test_health() -> None:
    payload = main_module.health()
    assert_true(payload.get("ok") is True, "/health should return ok=true")


def test_search_filters() -> None:
    reset_state()
    request = main_module.SearchRequest(keyword="smoke", duration="short", min_views=10000, translate=False)
    with patch.object(youtube_api, "youtube_api_get", side_effect=fake_youtube_api_get):
        payload = main_module.run_search(request)

    ids = [item["id"] for item in payload["items"]]
    assert_true(ids == ["s1"], f"/search should keep only s1, got {ids}")
    assert_true(payload["nextPageToken"] == "PAGE_2", "/search should pass the next page token through")


def test_session_paging() -> None:
    reset_state()
    request = main_module.SessionRequest(keyword="smoke", translate=False)
    with patch.object(youtube_api, "youtube_api_get", side_effect=fake_youtube_api_get) as fake:
        created = main_module.create_session(request)
        session_id = created["session_id"]
        page_two = main_module.goto_session_page(session_id, 2)
        calls = fake.call_count
        page_one = main_module.goto_session_page(session_id, 1)
        page_two_again = main_module.goto_session_page(session_id, 2)

    session = main_module.SESSIONS[session_id]
    assert_true(created["meta"]["availablePages"] == [1, 2], "new session should know pages 1-2")
    assert_true([i["id"] for i in page_two["items"]] == ["s4"], "page 2 should hold s4")
    assert_true(page_two["items"][0]["level"] == 1, "hidden subscribers should score level 1")
    assert_true(calls == 6, "two pipeline runs should make six upstream calls")
    assert_true(page_one["meta"]["currentPage"] == 1, "navigating back should land on page 1")
    assert_true(page_two_again == page_two, "re-fetching page 2 should be identical")
    assert_true(session.chain.token_for(3) == "PAGE_3", "page 3 token should stay recorded")


def test_criteria_defaults() -> None:
    criteria = SearchCriteria(keyword="smoke")
    assert_true(criteria.country == "한국", "default country should be 한국")
    assert_true(criteria.min_views == "unlimited", "min views should default to unlimited")


def run() -> int:
    checks = [
        ("health", test_health),
        ("search filters", test_search_filters),
        ("session paging", test_session_paging),
        ("criteria defaults", test_criteria_defaults),
    ]
    failures = []

    for check_name, check_fn in checks:
        try:
            check_fn()
            print(f"[PASS] {check_name}")
        except Exception as exc:  # pragma: no cover - smoke script output path
            failures.append((check_name, str(exc)))
            print(f"[FAIL] {check_name}: {exc}")

    if failures:
        print(f"\nSmoke checks failed: {len(failures)}")
        for check_name, message in failures:
            print(f"- {check_name}: {message}")
        return 1

    print("\nAll smoke checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
