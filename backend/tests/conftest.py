import asyncio

import pytest

from skyscout.services.flight_search_service import FlightSearchService, SearchConfig

CITIES = {
    "MXP": "Milan",
    "LIN": "Milan",
    "BGY": "Bergamo",
    "BCN": "Barcelona",
    "MAD": "Madrid",
}


def build_candidate(
    fly_from: str = "MXP",
    fly_to: str = "BCN",
    price: float = 100,
    dep_local: str = "2026-11-02T08:00:00",
    flight_id: str | None = None,
    **extra,
) -> dict:
    candidate = {
        "flyFrom": fly_from,
        "flyTo": fly_to,
        "cityFrom": CITIES.get(fly_from, fly_from),
        "cityTo": CITIES.get(fly_to, fly_to),
        "departure": {"utc": f"{dep_local}.000Z", "local": dep_local},
        "arrival": {"utc": f"{dep_local[:11]}10:00:00.000Z", "local": f"{dep_local[:11]}10:00:00"},
        "totalDurationInSeconds": 7200,
        "price": price,
        "currency": "EUR",
        "deepLink": f"https://book/{fly_from}-{fly_to}-{price}",
    }
    if flight_id is not None:
        candidate["id"] = flight_id
    candidate.update(extra)
    return candidate


class FakeProvider:
    """Search function returning canned responses keyed by (origin, destination)."""

    def __init__(self, responses: dict | None = None, delay: float = 0.0):
        self.responses = responses or {}
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, query):
        self.calls.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            response = self.responses.get((query.origin, query.destination), [])
            if isinstance(response, BaseException):
                raise response
            return response
        finally:
            self.in_flight -= 1


@pytest.fixture
def candidate():
    return build_candidate


@pytest.fixture
def provider_factory():
    return FakeProvider


@pytest.fixture
def make_service():
    def _make(provider, **config_kwargs):
        return FlightSearchService(SearchConfig(search_fn=provider, **config_kwargs))
    return _make
