"""
Locale resolution for city content.

File layout under the content dir:
  <slug>.json        -- English (default locale)
  <slug>-<lang>.json -- translation, e.g. paris-fr.json

resolve_city tries the translation first and falls back to the English file
when the translation is missing, unreadable, not JSON, or fails the schema.
There is no chain beyond that (no "closest language"). If English also fails
the city does not exist as far as callers are concerned.

Slugs are checked against SLUG_RE before touching the filesystem, so a
request can never name a path outside the content dir.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from citybasic.config import settings
from citybasic.content.schema import City, CityNotFound, ContentError, parse_city

logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"^[a-z0-9-]+$")


@dataclass(frozen=True)
class ResolvedCity:
    city: City
    lang: str        # language of the content actually served
    fallback: bool   # True when English was served for a non-English request


def normalize_locale(
    lang: str | None,
    supported: Iterable[str] | None = None,
    default: str | None = None,
) -> str:
    """Lowercase primary subtag of `lang` if supported, else the default locale."""
    supported = list(supported or settings.supported_locales)
    default = default or settings.default_locale
    if not lang:
        return default
    primary = lang.strip().split("-")[0].split("_")[0].lower()
    return primary if primary in supported else default


def negotiate_locale(
    accept_language: str | None,
    supported: Iterable[str] | None = None,
    default: str | None = None,
) -> str:
    """
    Pick the first supported language from an Accept-Language header.

    "fr-FR,fr;q=0.9,en;q=0.8" -> "fr". Order in the header wins; q-values are
    not re-sorted, matching what browsers send in practice.
    """
    supported = list(supported or settings.supported_locales)
    default = default or settings.default_locale
    if not accept_language:
        return default
    for part in accept_language.split(","):
        primary = part.split(";")[0].strip().split("-")[0].lower()
        if primary in supported:
            return primary
    return default


def split_locale_suffix(
    stem: str,
    locales: Iterable[str] | None = None,
    default_locale: str | None = None,
) -> tuple[str, str]:
    """Split a file stem into (slug, lang): paris-fr -> (paris, fr), new-york -> (new-york, en)."""
    default_locale = default_locale or settings.default_locale
    translated = {loc for loc in (locales or settings.supported_locales) if loc != default_locale}
    head, _, tail = stem.rpartition("-")
    if head and tail in translated:
        return head, tail
    return stem, default_locale


def city_filename(slug: str, lang: str, default_locale: str | None = None) -> str:
    default_locale = default_locale or settings.default_locale
    return f"{slug}.json" if lang == default_locale else f"{slug}-{lang}.json"


def load_city_file(path: Path) -> City:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContentError(f"{path.name}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ContentError(f"{path.name}: invalid JSON ({exc})") from exc
    return parse_city(data)


def resolve_city(
    slug: str,
    lang: str | None = None,
    content_dir: str | Path | None = None,
    *,
    supported: Iterable[str] | None = None,
    default_locale: str | None = None,
) -> ResolvedCity:
    """Load the city in `lang`, falling back to English; raise CityNotFound if neither loads."""
    if not slug or not SLUG_RE.match(slug):
        raise CityNotFound(f"invalid city slug: {slug!r}")

    default_locale = default_locale or settings.default_locale
    lang = normalize_locale(lang, supported, default_locale)
    base = Path(content_dir or settings.content_dir)

    if lang != default_locale:
        try:
            city = load_city_file(base / city_filename(slug, lang, default_locale))
            return ResolvedCity(city=city, lang=lang, fallback=False)
        except ContentError as exc:
            logger.info("locale_fallback slug=%s lang=%s reason=%s", slug, lang, exc)

    try:
        city = load_city_file(base / city_filename(slug, default_locale, default_locale))
    except ContentError as exc:
        raise CityNotFound(str(exc)) from exc
    return ResolvedCity(city=city, lang=default_locale, fallback=lang != default_locale)
