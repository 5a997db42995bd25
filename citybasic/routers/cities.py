"""
City content, locale-resolved from the flat JSON files.

GET /api/cities                                  -- English summaries, sorted by name
GET /api/cities/{slug}?lang=                     -- {city, lang, fallback}
GET /api/cities/{slug}/places/{place_slug}?lang= -- {place, cityName, lang, fallback}
GET /api/cities/{slug}/info/{topic_slug}?lang=   -- {topic, cityName, lang, fallback}

Without ?lang= the language is negotiated from Accept-Language. `lang` in the
response is the language actually served, which is "en" when fallback is true.
Handlers are sync: the work is file reads, so they run in the threadpool.
"""

from typing import Optional

from fastapi import APIRouter, Header, Query

from citybasic.content import CityNotFound, ResolvedCity, list_cities, negotiate_locale, resolve_city
from citybasic.errors import NotFound

router = APIRouter(prefix="/api/cities", tags=["cities"])


def _resolve(slug: str, lang: Optional[str], accept_language: Optional[str]) -> ResolvedCity:
    requested = lang or negotiate_locale(accept_language)
    try:
        return resolve_city(slug, requested)
    except CityNotFound:
        raise NotFound("City not found")


@router.get("")
def get_cities() -> dict:
    return {"cities": list_cities()}


@router.get("/{slug}")
def get_city(
    slug: str,
    lang: Optional[str] = Query(default=None),
    accept_language: Optional[str] = Header(default=None),
) -> dict:
    resolved = _resolve(slug, lang, accept_language)
    return {
        "city": resolved.city.model_dump(mode="json"),
        "lang": resolved.lang,
        "fallback": resolved.fallback,
    }


@router.get("/{slug}/places/{place_slug}")
def get_place(
    slug: str,
    place_slug: str,
    lang: Optional[str] = Query(default=None),
    accept_language: Optional[str] = Header(default=None),
) -> dict:
    resolved = _resolve(slug, lang, accept_language)
    place = resolved.city.find_place(place_slug)
    if place is None:
        raise NotFound("Place not found")
    return {
        "place": place.model_dump(mode="json"),
        "cityName": resolved.city.name,
        "lang": resolved.lang,
        "fallback": resolved.fallback,
    }


@router.get("/{slug}/info/{topic_slug}")
def get_topic(
    slug: str,
    topic_slug: str,
    lang: Optional[str] = Query(default=None),
    accept_language: Optional[str] = Header(default=None),
) -> dict:
    resolved = _resolve(slug, lang, accept_language)
    topic = resolved.city.find_topic(topic_slug)
    if topic is None:
        raise NotFound("Topic not found")
    return {
        "topic": topic.model_dump(mode="json"),
        "cityName": resolved.city.name,
        "lang": resolved.lang,
        "fallback": resolved.fallback,
    }
