import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel
from rich.logging import RichHandler

load_dotenv()

DEFAULT_CORS_ORIGINS = ["http://localhost:5173"]
NOISY_LOGGERS = [
    "urllib3.connectionpool",
    "httpx",
    "google_genai",
    "google_genai.models",
]


class Settings(BaseModel):
    youtube_api_key: str | None = None
    youtube_api_timeout: int = 15
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    cors_origins: list[str] = DEFAULT_CORS_ORIGINS
    cors_credentials: bool = True
    log_level: str = "INFO"


def parse_cors_origins(raw: str | None) -> tuple[list[str], bool]:
    raw = (raw or "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS), True
    if raw == "*":
        return ["*"], False
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    if not origins:
        return list(DEFAULT_CORS_ORIGINS), True
    return origins, True


def load_settings() -> Settings:
    origins, credentials = parse_cors_origins(os.getenv("CORS_ALLOWED_ORIGINS"))
    try:
        timeout = int(os.getenv("YOUTUBE_API_TIMEOUT") or 15)
    except ValueError:
        timeout = 15
    return Settings(
        youtube_api_key=os.getenv("YOUTUBE_API_KEY") or None,
        youtube_api_timeout=max(1, timeout),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL") or "gemini-2.5-flash",
        cors_origins=origins,
        cors_credentials=credentials,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def setup_logging(log_level: str = "INFO") -> None:
    rich_handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=[rich_handler],
        format="%(message)s",
        force=True,
    )
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
