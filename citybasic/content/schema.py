"""
City content models.

City JSON files are hand-edited and machine-translated, so a few fields come
in two shapes: `description` on a place and `intro_vibe` on a city are either
a plain string (older files) or an object. The before-validators normalize
both shapes into one model at load time; a file that fits neither is rejected
with ContentError instead of leaking a half-parsed dict to callers.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

SLUG_PATTERN = r"^[a-z0-9-]+$"


class ContentError(Exception):
    """City content is missing, unreadable, or does not match the schema."""


class CityNotFound(ContentError):
    pass


class _Content(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PlaceDescription(_Content):
    short: str = Field(min_length=1)
    history: Optional[str] = None
    insider_tip: Optional[str] = None
    price_level: Optional[str] = None
    duration: Optional[str] = None
    best_time: Optional[str] = None
    good_for: list[str] = Field(default_factory=list)


class IntroVibe(_Content):
    short: str = Field(min_length=1)
    long: Optional[str] = None


def _as_short_text(value: Any) -> Any:
    if isinstance(value, str):
        return {"short": value}
    if isinstance(value, dict) and "short" not in value and "description" in value:
        return {**value, "short": value["description"]}
    return value


class Geo(_Content):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Place(_Content):
    id: str = Field(min_length=1)
    slug: str = Field(pattern=SLUG_PATTERN)
    name_en: str = Field(min_length=1)
    name_local: Optional[str] = None
    category: str = Field(min_length=1)
    description: PlaceDescription
    image: str = ""
    is_generic_staple: bool = False
    geo: Optional[Geo] = None

    @field_validator("description", mode="before")
    @classmethod
    def _normalize_description(cls, value: Any) -> Any:
        return _as_short_text(value)


class PlaceGroup(_Content):
    id: str
    title: str
    items: list[Place] = Field(default_factory=list)


class WeatherMonth(_Content):
    id: Union[int, str]
    name: str
    temp: str
    condition: str
    rain_days: Optional[float] = None
    vibe: Optional[str] = None
    clothing: Optional[str] = None
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)


class Neighborhood(_Content):
    name: str
    vibe: str = ""
    description: str = ""
    image: str = ""
    highlights: list[str] = Field(default_factory=list)


class ItineraryStop(_Content):
    time: str
    title: str
    description: str = ""
    image: Optional[str] = None
    ticket_link: Optional[str] = None


class LogisticsTopic(_Content):
    id: str
    slug: str = Field(pattern=SLUG_PATTERN)
    title: str
    icon: str = ""
    summary: str = ""
    details: list[str] = Field(default_factory=list)


class AffiliateProduct(_Content):
    id: str
    title: str
    image: str = ""
    reason: str = ""
    amazon_url: str
    category: str = ""


class Phrase(_Content):
    src: str
    local: str
    phonetic: str = ""


class Culture(_Content):
    etiquette_tips: list[str] = Field(default_factory=list)
    essential_phrases: list[Phrase] = Field(default_factory=list)


class GeneralInfo(_Content):
    population: str = ""
    is_capital: bool = False
    description: str = ""


class Stats(_Content):
    currency: str = ""
    plug_type: str = ""
    main_language: Optional[str] = None


class City(_Content):
    id: str = Field(min_length=1)
    slug: str = Field(pattern=SLUG_PATTERN)
    name: str = Field(min_length=1)
    country: str = Field(min_length=1)
    country_code: Optional[str] = None
    hero_image: str = ""
    intro_vibe: IntroVibe
    best_time_to_visit: Optional[str] = None
    currency: Optional[str] = None
    language_primary: Optional[str] = None
    general_info: GeneralInfo = Field(default_factory=GeneralInfo)
    stats: Stats = Field(default_factory=Stats)
    weather_breakdown: list[WeatherMonth] = Field(default_factory=list)
    neighborhoods: list[Neighborhood] = Field(default_factory=list)
    itinerary: list[ItineraryStop] = Field(default_factory=list)
    logistics: list[LogisticsTopic] = Field(default_factory=list)
    must_eat: list[Place] = Field(default_factory=list)
    must_see: list[PlaceGroup] = Field(default_factory=list)
    culture: Culture = Field(default_factory=Culture)
    affiliate_products: list[AffiliateProduct] = Field(default_factory=list)

    @field_validator("intro_vibe", mode="before")
    @classmethod
    def _normalize_intro(cls, value: Any) -> Any:
        return _as_short_text(value)

    def all_places(self) -> list[Place]:
        places = [place for group in self.must_see for place in group.items]
        places.extend(self.must_eat)
        return places

    def find_place(self, slug: str) -> Optional[Place]:
        return next((p for p in self.all_places() if p.slug == slug), None)

    def find_topic(self, slug: str) -> Optional[LogisticsTopic]:
        return next((t for t in self.logistics if t.slug == slug), None)

    def summary(self) -> dict:
        return {
            "slug": self.slug,
            "name": self.name,
            "country": self.country,
            "hero_image": self.hero_image,
        }


def parse_city(data: Any) -> City:
    try:
        return City.model_validate(data)
    except ValidationError as exc:
        raise ContentError(str(exc)) from exc
