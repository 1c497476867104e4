from datetime import datetime
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from backend.app.errors import InvalidCriteriaError
from backend.app.services.date_windows import parse_date_range
from backend.app.services.scoring import MAX_LEVEL, MIN_LEVEL, compute_ratio, level_of

UNLIMITED = "unlimited"
ALL_LEVELS = "all"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

DurationClass = Literal["any", "short", "long"]
Threshold = int | Literal["unlimited"]


class VideoRecord(BaseModel):
    """
    One search hit merged with its video details and channel statistics.
    ratio and level are derived on read so they always follow the counts.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    channel_title: str = ""
    channel_id: str = ""
    thumbnail_url: str | None = None
    published_at: datetime | None = None
    duration: str = ""
    view_count: int = Field(default=0, ge=0)
    subscriber_count: int = Field(default=0, ge=0)

    @computed_field
    @property
    def ratio(self) -> float:
        return compute_ratio(self.view_count, self.subscriber_count)

    @computed_field
    @property
    def level(self) -> int:
        return level_of(self.ratio)

    @computed_field
    @property
    def url(self) -> str:
        return YOUTUBE_WATCH_URL.format(video_id=self.id)

    def to_item(self) -> dict[str, Any]:
        published = None
        if self.published_at is not None:
            published = self.published_at.isoformat().replace("+00:00", "Z")
        return {
            "id": self.id,
            "title": self.title,
            "channelTitle": self.channel_title,
            "channelId": self.channel_id,
            "thumbnailUrl": self.thumbnail_url,
            "publishedAt": published,
            "duration": self.duration,
            "viewCount": self.view_count,
            "subscriberCount": self.subscriber_count,
            "ratio": self.ratio,
            "level": self.level,
            "url": self.url,
        }


def _coerce_threshold(value: Any, field_name: str) -> Any:
    if value is None:
        return UNLIMITED
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be 'unlimited' or a non-negative integer")
    if isinstance(value, str):
        raw = value.strip().lower().replace(",", "")
        if raw in {"", UNLIMITED}:
            return UNLIMITED
        if not raw.isdigit():
            raise ValueError(f"{field_name} must be 'unlimited' or a non-negative integer")
        return int(raw)
    if isinstance(value, int) and value < 0:
        raise ValueError(f"{field_name} must be 'unlimited' or a non-negative integer")
    return value


class SearchCriteria(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    keyword: str
    country: str = "한국"
    duration: DurationClass = "any"
    date_range: str = "all"
    min_subscribers: Threshold = UNLIMITED
    min_views: Threshold = UNLIMITED
    performance_level: int | Literal["all"] = ALL_LEVELS

    @field_validator("keyword")
    @classmethod
    def _keyword_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("keyword is required")
        return value

    @field_validator("duration", mode="before")
    @classmethod
    def _normalize_duration(cls, value: Any) -> Any:
        if value is None:
            return "any"
        if isinstance(value, str):
            return value.strip().lower() or "any"
        return value

    @field_validator("date_range")
    @classmethod
    def _known_date_range(cls, value: str) -> str:
        value = value.strip().lower() or "all"
        parse_date_range(value)
        return value

    @field_validator("min_subscribers", "min_views", mode="before")
    @classmethod
    def _threshold(cls, value: Any, info: ValidationInfo) -> Any:
        return _coerce_threshold(value, info.field_name)

    @field_validator("performance_level", mode="before")
    @classmethod
    def _coerce_level(cls, value: Any) -> Any:
        if value is None:
            return ALL_LEVELS
        if isinstance(value, str):
            raw = value.strip().lower()
            if raw in {"", ALL_LEVELS}:
                return ALL_LEVELS
            if raw.isdigit():
                return int(raw)
        return value

    @field_validator("performance_level")
    @classmethod
    def _level_in_range(cls, value: int | str) -> int | str:
        if value != ALL_LEVELS and not MIN_LEVEL <= value <= MAX_LEVEL:
            raise ValueError(f"performance_level must be 'all' or {MIN_LEVEL}-{MAX_LEVEL}")
        return value

    @classmethod
    def from_filters(cls, filters: dict[str, Any]) -> "SearchCriteria":
        try:
            return cls.model_validate(filters)
        except ValidationError as exc:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
                for err in exc.errors()
            )
            raise InvalidCriteriaError(messages) from exc


class SearchPage(BaseModel):
    records: list[VideoRecord] = Field(default_factory=list)
    next_token: str | None = None
    total_estimate: int = 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "items": [record.to_item() for record in self.records],
            "nextPageToken": self.next_token,
            "totalResults": self.total_estimate,
        }
