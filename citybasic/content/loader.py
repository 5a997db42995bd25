"""Directory-level helpers over the city content files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from citybasic.config import settings
from citybasic.content.locale import SLUG_RE, load_city_file, split_locale_suffix
from citybasic.content.schema import City, ContentError

logger = logging.getLogger(__name__)


def is_base_file(path: Path, locales: Iterable[str] | None = None, default_locale: str | None = None) -> bool:
    """True for <slug>.json, False for translations like <slug>-fr.json."""
    if path.suffix != ".json" or not SLUG_RE.match(path.stem):
        return False
    default_locale = default_locale or settings.default_locale
    _, lang = split_locale_suffix(path.stem, locales, default_locale)
    return lang == default_locale


def base_files(content_dir: str | Path | None = None, locales: Iterable[str] | None = None) -> list[Path]:
    base = Path(content_dir or settings.content_dir)
    if not base.is_dir():
        return []
    locales = list(locales or settings.supported_locales)
    return sorted(p for p in base.glob("*.json") if is_base_file(p, locales))


def load_base_cities(content_dir: str | Path | None = None, locales: Iterable[str] | None = None) -> list[City]:
    """Load every English city file, skipping (and logging) the ones that fail validation."""
    cities = []
    for path in base_files(content_dir, locales):
        try:
            cities.append(load_city_file(path))
        except ContentError as exc:
            logger.warning("city_file_invalid file=%s error=%s", path.name, exc)
    return cities


def list_cities(content_dir: str | Path | None = None, locales: Iterable[str] | None = None) -> list[dict]:
    cities = load_base_cities(content_dir, locales)
    return [c.summary() for c in sorted(cities, key=lambda c: c.name)]
