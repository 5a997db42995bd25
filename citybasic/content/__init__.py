"""
City content: pydantic models for the JSON files, locale resolution with
English fallback, and directory listing.
"""

from citybasic.content.locale import ResolvedCity, negotiate_locale, normalize_locale, resolve_city
from citybasic.content.loader import list_cities, load_base_cities
from citybasic.content.schema import City, CityNotFound, ContentError, Place

__all__ = [
    "City",
    "CityNotFound",
    "ContentError",
    "Place",
    "ResolvedCity",
    "list_cities",
    "load_base_cities",
    "negotiate_locale",
    "normalize_locale",
    "resolve_city",
]
