from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from skyscout.config import settings

# Provider payloads and API responses both use camelCase keys
CAMEL_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class TimePair(BaseModel):
    utc: str
    local: str


class Layover(BaseModel):
    at: str
    city: str | None = None
    city_code: str | None = None
    duration_in_seconds: int | None = None
    arrival: TimePair | None = None
    departure: TimePair | None = None

    model_config = CAMEL_CONFIG


class FlightRecord(BaseModel):
    id: str
    fly_from: str
    fly_to: str
    city_from: str
    city_to: str
    departure: TimePair
    arrival: TimePair
    total_duration_in_seconds: int
    duration_in_seconds: int | None = None
    price: float = Field(ge=0)
    currency: str = "EUR"
    deep_link: str
    layovers: list[Layover] | None = None  # itinerary order
    direction: Literal["outbound", "return"] | None = None

    model_config = CAMEL_CONFIG


class SearchPreferences(BaseModel):
    priority: Literal["price", "duration", "convenience"] = "price"
    prefer_direct_flights: bool = True
    max_layover_hours: float = 4
    departure_time_preference: Literal["morning", "afternoon", "evening", "any"] = "any"

    model_config = CAMEL_CONFIG


class FlightSearchInput(BaseModel):
    fly_from: list[str] = Field(min_length=1)
    fly_to: list[str] = Field(min_length=1)
    departure_date: str = Field(pattern=DATE_PATTERN)
    return_date: str | None = Field(default=None, pattern=DATE_PATTERN)
    max_results: int = Field(default_factory=lambda: settings.default_max_results, ge=1, le=20)
    currency: str = Field(default_factory=lambda: settings.default_currency, min_length=3, max_length=3)
    preferences: SearchPreferences | None = None

    model_config = CAMEL_CONFIG

    @field_validator("fly_from", "fly_to")
    @classmethod
    def _normalize_codes(cls, codes: list[str]) -> list[str]:
        normalized = [c.strip().upper() for c in codes]
        if any(not c for c in normalized):
            raise ValueError("airport codes must not be blank")
        return normalized

    @field_validator("departure_date", "return_date")
    @classmethod
    def _real_calendar_date(cls, value: str | None) -> str | None:
        if value is not None:
            date.fromisoformat(value)
        return value

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @model_validator(mode="after")
    def _return_after_departure(self):
        if self.return_date and self.return_date < self.departure_date:
            raise ValueError("return_date must not be before departure_date")
        return self

    @property
    def is_round_trip(self) -> bool:
        return bool(self.return_date)


class SearchStats(BaseModel):
    """Per-direction counters for data silently dropped during a search."""

    pairs: int = 0
    failed_pairs: int = 0
    candidates: int = 0
    dropped_candidates: int = 0
    free_text_fallbacks: int = 0
    duplicates_removed: int = 0

    model_config = CAMEL_CONFIG

    def merge(self, other: "SearchStats") -> "SearchStats":
        return SearchStats(
            pairs=self.pairs + other.pairs,
            failed_pairs=self.failed_pairs + other.failed_pairs,
            candidates=self.candidates + other.candidates,
            dropped_candidates=self.dropped_candidates + other.dropped_candidates,
            free_text_fallbacks=self.free_text_fallbacks + other.free_text_fallbacks,
            duplicates_removed=self.duplicates_removed + other.duplicates_removed,
        )


class FlightSearchResponse(BaseModel):
    trip_type: Literal["one-way", "round-trip"]
    flights: list[FlightRecord] | None = None   # one-way
    outbound: list[FlightRecord] | None = None  # round-trip
    return_: list[FlightRecord] | None = Field(default=None, alias="return")
    stats: SearchStats = Field(default_factory=SearchStats)

    model_config = CAMEL_CONFIG

    @property
    def outbound_flights(self) -> list[FlightRecord]:
        if self.trip_type == "one-way":
            return list(self.flights or [])
        return list(self.outbound or [])

    @property
    def return_flights(self) -> list[FlightRecord]:
        return list(self.return_ or [])
