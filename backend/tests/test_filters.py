import pytest

from backend.app.errors import InvalidCriteriaError
from backend.app.models import SearchCriteria, VideoRecord
from backend.app.services.durations import is_short_form
from backend.app.services.filters import apply_filters, rejection_reason
from backend.app.services.pipeline import search


def make_record(video_id, views=1000, subscribers=1000, duration="PT3M"):
    return VideoRecord(
        id=video_id,
        title=f"Video {video_id}",
        duration=duration,
        view_count=views,
        subscriber_count=subscribers,
    )


RECORDS = [
    make_record("a", views=15000, subscribers=10000, duration="PT45S"),  # level 3
    make_record("b", views=20000, subscribers=40000, duration="PT1M30S"),  # level 2
    make_record("c", views=5000, subscribers=5000, duration="PT30S"),  # level 3
    make_record("d", views=90000, subscribers=10000, duration="PT25M"),  # level 5
    make_record("e", views=10, subscribers=0, duration="PT60S"),  # level 1
]


def ids(records):
    return [r.id for r in records]


def test_no_filters_keeps_everything():
    assert ids(apply_filters(RECORDS, SearchCriteria(keyword="x"))) == ["a", "b", "c", "d", "e"]


def test_strict_short_cutoff_at_sixty_seconds():
    sixty = make_record("sixty", duration="PT60S")
    sixty_one = make_record("sixty_one", duration="PT61S")
    criteria = SearchCriteria(keyword="x", duration="short")
    assert ids(apply_filters([sixty, sixty_one], criteria)) == ["sixty"]


@pytest.mark.parametrize("duration", ["PT0S", "PT59S", "PT1M", "PT1M1S", "P1DT0S", "garbage"])
def test_short_filter_agrees_with_short_form_check(duration):
    criteria = SearchCriteria(keyword="x", duration="short")
    record = make_record("r", duration=duration)
    assert (rejection_reason(record, criteria) is None) == is_short_form(duration)


def test_long_duration_is_not_narrowed_locally():
    criteria = SearchCriteria(keyword="x", duration="long")
    assert ids(apply_filters(RECORDS, criteria)) == ["a", "b", "c", "d", "e"]


def test_min_views_and_subscribers():
    criteria = SearchCriteria(keyword="x", min_views=10000, min_subscribers="10000")
    assert ids(apply_filters(RECORDS, criteria)) == ["a", "b", "d"]


def test_performance_level():
    criteria = SearchCriteria(keyword="x", performance_level=3)
    assert ids(apply_filters(RECORDS, criteria)) == ["a", "c"]


def test_filters_are_conjunctive_and_order_preserving():
    criteria = SearchCriteria(keyword="x", duration="short", performance_level="3")
    filtered = apply_filters(list(reversed(RECORDS)), criteria)
    assert ids(filtered) == ["c", "a"]


def test_filter_is_pure():
    criteria = SearchCriteria(keyword="x", min_views=10000)
    snapshot = [r.model_dump() for r in RECORDS]
    first = apply_filters(RECORDS, criteria)
    second = apply_filters(RECORDS, criteria)
    assert first == second
    assert [r.model_dump() for r in RECORDS] == snapshot


def test_rejection_reason_names_the_predicate():
    criteria = SearchCriteria(keyword="x", duration="short")
    assert "exceeds 60s" in rejection_reason(RECORDS[1], criteria)
    assert rejection_reason(RECORDS[0], criteria) is None


@pytest.mark.parametrize(
    "filters",
    [
        {"keyword": "  "},
        {"keyword": "x", "duration": "medium"},
        {"keyword": "x", "dateRange": "5y?"},
        {"keyword": "x", "minViews": "-5"},
        {"keyword": "x", "minSubscribers": "lots"},
        {"keyword": "x", "performanceLevel": 6},
        {"keyword": "x", "performanceLevel": 0},
    ],
)
def test_invalid_criteria(filters):
    with pytest.raises(InvalidCriteriaError):
        SearchCriteria.from_filters(filters)


def test_criteria_from_original_filter_state():
    criteria = SearchCriteria.from_filters(
        {
            "keyword": "먹방",
            "country": "미국",
            "duration": "short",
            "dateRange": "3m",
            "minSubscribers": "unlimited",
            "minViews": "10000",
            "performanceLevel": "all",
        }
    )
    assert criteria.min_views == 10000
    assert criteria.min_subscribers == "unlimited"
    assert criteria.performance_level == "all"
    assert criteria.date_range == "3m"


def test_short_views_scenario_end_to_end(fake_youtube):
    fake_youtube.add_search_page(["v1", "v2", "v3"], next_token="NEXT")
    fake_youtube.add_video("v1", "UC_1", views=15000, duration="PT45S")
    fake_youtube.add_video("v2", "UC_2", views=20000, duration="PT1M30S")
    fake_youtube.add_video("v3", "UC_3", views=5000, duration="PT30S")
    fake_youtube.add_channel("UC_1", 10000)
    fake_youtube.add_channel("UC_2", 40000)
    fake_youtube.add_channel("UC_3", 5000)

    criteria = SearchCriteria(
        keyword="x",
        duration="short",
        min_views=10000,
        min_subscribers="unlimited",
        performance_level="all",
    )
    page = search(criteria, "x")

    assert ids(page.records) == ["v1"]
    assert page.records[0].level == 3
    assert page.next_token == "NEXT"
