import csv
import io
import re
from datetime import date, datetime

from backend.app.models import VideoRecord
from backend.app.services.durations import format_duration

CSV_HEADERS = [
    "제목",
    "채널명",
    "조회수",
    "구독자수",
    "조회수/구독자 비율",
    "성과 등급",
    "게시일",
    "영상 길이",
    "링크",
]
# Excel needs the BOM to read UTF-8 Korean text.
UTF8_BOM = "\ufeff"
UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\r\n]+')


def format_ko_date(value: datetime | None) -> str:
    if value is None:
        return ""
    return f"{value.year}. {value.month}. {value.day}."


def record_to_row(record: VideoRecord) -> list[str]:
    return [
        record.title,
        record.channel_title,
        str(record.view_count),
        str(record.subscriber_count),
        f"{record.ratio * 100:.2f}%",
        f"Level {record.level}",
        format_ko_date(record.published_at),
        format_duration(record.duration),
        record.url,
    ]


def export_csv(records: list[VideoRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow(record_to_row(record))
    return UTF8_BOM + buffer.getvalue()


def export_filename(keyword: str, today: date | None = None) -> str:
    today = today or date.today()
    safe_keyword = UNSAFE_FILENAME_RE.sub("_", keyword.strip()) or "search"
    return f"youtube_trend_{safe_keyword}_{today.isoformat()}.csv"
