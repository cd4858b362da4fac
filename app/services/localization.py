from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from app.core.config import Settings


@dataclass(frozen=True)
class LocalizationConfig:
    default_language: str
    supported_languages: tuple[str, ...]

    @classmethod
    def from_settings(cls, settings: Settings) -> LocalizationConfig:
        return cls(
            default_language=settings.default_language,
            supported_languages=tuple(settings.supported_languages),
        )


def normalize_language(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _base_tag(language: str) -> str:
    return language.split("-")[0]


def is_supported_language(value: Any, config: LocalizationConfig) -> bool:
    language = normalize_language(value)
    if not language:
        return False
    supported = set(config.supported_languages)
    return language in supported or _base_tag(language) in supported


def parse_accept_language(header_value: str | None) -> list[str]:
    """Return the languages of an Accept-Language header, highest quality first.

    Entries without a ``q`` parameter weigh 1. Unparseable or NaN weights are ignored
    rather than rejected, and ties keep header order.
    """
    if not header_value:
        return []

    weighted: list[tuple[float, str]] = []
    for part in header_value.split(","):
        raw_language, *params = part.strip().split(";")
        language = normalize_language(raw_language)
        if not language:
            continue
        quality = 1.0
        for param in params:
            param = param.strip()
            if not param.startswith("q="):
                continue
            try:
                parsed_quality = float(param[2:])
            except ValueError:
                continue
            if not math.isnan(parsed_quality):
                quality = parsed_quality
        weighted.append((quality, language))

    weighted.sort(key=lambda item: item[0], reverse=True)
    return [language for _, language in weighted]


def pick_supported_language(candidates: Iterable[Any], config: LocalizationConfig) -> str:
    supported = set(config.supported_languages)
    for candidate in candidates:
        language = normalize_language(candidate)
        if not language:
            continue
        if language in supported:
            return language
        base = _base_tag(language)
        if base in supported:
            return base
    return config.default_language


def get_localized_field(
    base_value: Any,
    translations: Mapping[str, Any] | None,
    language: str | None,
    config: LocalizationConfig,
    fallback_language: str | None = None,
) -> Any:
    if not isinstance(translations, Mapping):
        return base_value

    keys: list[str] = []
    normalized_language = normalize_language(language)
    if normalized_language:
        keys.append(normalized_language)
        keys.append(_base_tag(normalized_language))

    normalized_fallback = normalize_language(fallback_language) or config.default_language
    keys.append(normalized_fallback)
    keys.append(_base_tag(normalized_fallback))

    for key in dict.fromkeys(keys):
        value = translations.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return base_value
