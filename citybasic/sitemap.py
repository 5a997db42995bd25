"""
Sitemap generation.

Two stages, kept separate so the API never walks the content dir per request:

  scripts/generate_sitemap.py -> collect_site_urls() -> flat URL list on disk
  GET /api/sitemap            -> read_first_source() -> extract_urls() -> build_sitemap_xml()

The flat list is whitespace-separated; anything that does not start with
"http" is ignored, so the file can carry comments or a stray XML wrapper.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional
from xml.sax.saxutils import escape

from citybasic.config import settings
from citybasic.content.loader import base_files
from citybasic.content.locale import city_filename, load_city_file
from citybasic.content.schema import ContentError

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

DEFAULT_CHANGEFREQ = "weekly"
DEFAULT_PRIORITY = "0.7"
HOME_PRIORITY = "1.0"
CITY_PRIORITY = "0.9"
PLACE_PRIORITY = "0.8"


@dataclass(frozen=True)
class SitemapEntry:
    loc: str
    changefreq: str = DEFAULT_CHANGEFREQ
    priority: str = DEFAULT_PRIORITY


def build_sitemap_xml(entries: Iterable[SitemapEntry]) -> str:
    body = "".join(
        "\n  <url>\n"
        f"    <loc>{escape(entry.loc)}</loc>\n"
        f"    <changefreq>{entry.changefreq}</changefreq>\n"
        f"    <priority>{entry.priority}</priority>\n"
        "  </url>"
        for entry in entries
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NS}">{body}\n</urlset>'
    )


def extract_urls(raw: str) -> list[str]:
    return [token for token in raw.split() if token.startswith("http")]


def read_first_source(paths: Iterable[str | Path] | None = None) -> Optional[str]:
    """Return the contents of the first readable path, or None if none can be read."""
    for candidate in paths if paths is not None else settings.sitemap_source_paths:
        try:
            return Path(candidate).read_text(encoding="utf-8")
        except OSError:
            continue
    return None


def _locale_prefix(lang: str, default_locale: str) -> str:
    return "" if lang == default_locale else f"/{lang}"


def collect_site_urls(
    content_dir: str | Path | None = None,
    site_url: str | None = None,
    locales: Iterable[str] | None = None,
    default_locale: str | None = None,
) -> list[SitemapEntry]:
    """
    Walk the content dir and list every public page.

    English pages live at /city/<slug>; other locales under /<lang>/city/<slug>
    and only when that city has a translation file. Invalid files are skipped
    with a warning; scripts/validate_data.py is the place that fails on them.
    """
    base = Path(content_dir or settings.content_dir)
    site = (site_url or settings.site_url).rstrip("/")
    locales = list(locales or settings.supported_locales)
    default_locale = default_locale or settings.default_locale

    entries = [SitemapEntry(loc=f"{site}/", priority=HOME_PRIORITY)]
    for path in base_files(base, locales):
        try:
            english = load_city_file(path)
        except ContentError as exc:
            logger.warning("sitemap_skip_city file=%s error=%s", path.name, exc)
            continue

        for lang in locales:
            if lang != default_locale and not (base / city_filename(english.slug, lang, default_locale)).is_file():
                continue
            prefix = f"{site}{_locale_prefix(lang, default_locale)}/city/{english.slug}"
            entries.append(SitemapEntry(loc=prefix, priority=CITY_PRIORITY))
            for place in english.all_places():
                entries.append(SitemapEntry(loc=f"{prefix}/{place.slug}", priority=PLACE_PRIORITY))

    logger.info("sitemap_collected urls=%d", len(entries))
    return entries
