from typing import NamedTuple


class Locale(NamedTuple):
    name: str
    region_code: str
    language: str


# Display name -> region code / translation target (bias, not guarantee)
LOCALES: dict[str, Locale] = {
    "한국": Locale("한국", "KR", "Korean"),
    "미국": Locale("미국", "US", "English"),
    "일본": Locale("일본", "JP", "Japanese"),
    "인도네시아": Locale("인도네시아", "ID", "Indonesian"),
    "베트남": Locale("베트남", "VN", "Vietnamese"),
    "인도": Locale("인도", "IN", "Hindi"),
    "러시아": Locale("러시아", "RU", "Russian"),
}
DEFAULT_LOCALE = LOCALES["한국"]

LOCALE_ALIASES = {
    "korea": "한국",
    "south korea": "한국",
    "united states": "미국",
    "usa": "미국",
    "japan": "일본",
    "indonesia": "인도네시아",
    "vietnam": "베트남",
    "india": "인도",
    "russia": "러시아",
}


def resolve_locale(name: str | None) -> Locale:
    raw = (name or "").strip()
    if raw in LOCALES:
        return LOCALES[raw]

    lowered = raw.lower()
    alias = LOCALE_ALIASES.get(lowered)
    if alias:
        return LOCALES[alias]

    for locale in LOCALES.values():
        if locale.region_code.lower() == lowered:
            return locale

    # Unknown names search the Korean market, same as the UI default.
    return DEFAULT_LOCALE


def supported_locales() -> list[dict[str, str]]:
    return [
        {"name": locale.name, "region_code": locale.region_code, "language": locale.language}
        for locale in LOCALES.values()
    ]
