"""
Offline content checks used by scripts/validate_data.py.

Errors make a file unusable (bad JSON, schema failure). Warnings are data
smells that still load: duplicate place slugs or ids inside a city, and a
slug that does not match the filename.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from citybasic.config import settings
from citybasic.content.locale import load_city_file, split_locale_suffix
from citybasic.content.schema import City, ContentError


@dataclass
class FileReport:
    name: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _duplicates(values: Iterable[str]) -> list[str]:
    return sorted(value for value, count in Counter(values).items() if count > 1)


def expected_slug(path: Path, locales: Iterable[str] | None = None, default_locale: str | None = None) -> str:
    """paris.json -> paris, paris-fr.json -> paris."""
    return split_locale_suffix(path.stem, locales, default_locale)[0]


def city_warnings(city: City, expected: str) -> list[str]:
    places = city.all_places()
    warnings = []
    dup_slugs = _duplicates(p.slug for p in places)
    if dup_slugs:
        warnings.append(f"Duplicate place slugs: {', '.join(dup_slugs)}")
    dup_ids = _duplicates(p.id for p in places)
    if dup_ids:
        warnings.append(f"Duplicate place IDs: {', '.join(dup_ids)}")
    if city.slug != expected:
        warnings.append(f'Slug mismatch: file expects "{expected}" but slug is "{city.slug}"')
    return warnings


def check_file(path: Path, locales: Iterable[str] | None = None) -> FileReport:
    report = FileReport(name=path.name)
    try:
        city = load_city_file(path)
    except ContentError as exc:
        report.errors.append(str(exc))
        return report
    report.warnings.extend(city_warnings(city, expected_slug(path, locales)))
    return report


def check_dir(content_dir: str | Path, locales: Iterable[str] | None = None) -> list[FileReport]:
    locales = list(locales or settings.supported_locales)
    return [check_file(path, locales) for path in sorted(Path(content_dir).glob("*.json"))]
