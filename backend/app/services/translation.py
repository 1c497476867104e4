import logging

from google.genai import Client
from google.genai import types

from backend.app.config import get_settings
from backend.app.errors import TranslationUnavailable
from backend.app.services.locales import resolve_locale

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a helpful translator. Your only task is to translate the given keyword into the "
    "target language suitable for a YouTube search query. Only return the translated string, "
    "nothing else."
)


def strip_wrapping_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        text = text[1:-1].strip()
    return text


def request_translation(keyword: str, target_language: str, api_key: str | None, model: str) -> str:
    if not api_key:
        raise TranslationUnavailable("GEMINI_API_KEY missing")

    try:
        client = Client(api_key=api_key)
        response = client.models.generate_content(
            model=model,
            contents=(
                f'Translate the keyword "{keyword}" to {target_language}. '
                "If it is already in that language, return it as is."
            ),
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_INSTRUCTION,
                temperature=0.1,
            ),
        )
        text = response.text or ""
    except Exception as exc:
        raise TranslationUnavailable(str(exc)) from exc

    translated = strip_wrapping_quotes(text)
    if not translated:
        raise TranslationUnavailable("empty reply")
    return translated


def translate_keyword(
    keyword: str,
    country: str,
    api_key: str | None = None,
    model: str | None = None,
) -> str:
    """
    Translate a search keyword into the country's language with Gemini.

    Never raises: any failure hands back the keyword unchanged so the search
    can still run.
    """
    if not keyword or not keyword.strip():
        return keyword

    settings = get_settings()
    target_language = resolve_locale(country).language
    try:
        translated = request_translation(
            keyword,
            target_language,
            api_key or settings.gemini_api_key,
            model or settings.gemini_model,
        )
    except TranslationUnavailable as exc:
        logger.warning("Keyword translation unavailable, using original keyword: %s", exc)
        return keyword

    logger.info("Translated %r to %r (%s)", keyword, translated, target_language)
    return translated
