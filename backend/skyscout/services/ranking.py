"""Deduplication and price ranking for one search direction."""

from dataclasses import dataclass

from skyscout.schemas.flight import FlightRecord


@dataclass
class DedupResult:
    flights: list[FlightRecord]
    duplicates_removed: int = 0


def offer_key(flight: FlightRecord) -> tuple:
    """Composite key: two records with the same key are the same offer."""
    return (flight.fly_from, flight.fly_to, flight.price, flight.departure.local)


def dedupe_flights(per_pair: list[list[FlightRecord]], direction: str) -> DedupResult:
    """
    Merge per-pair batches in pair order, keeping the first occurrence of each offer.

    Every kept record is a tagged copy; inputs are never mutated. A record whose
    id was already taken by a different offer gets a numeric suffix so ids stay
    unique within the direction.
    """
    seen: set[tuple] = set()
    used_ids: set[str] = set()
    flights: list[FlightRecord] = []
    removed = 0

    for batch in per_pair:
        for flight in batch:
            key = offer_key(flight)
            if key in seen:
                removed += 1
                continue
            seen.add(key)

            flight_id = flight.id
            suffix = 1
            while flight_id in used_ids:
                suffix += 1
                flight_id = f"{flight.id}-{suffix}"
            used_ids.add(flight_id)

            flights.append(flight.model_copy(update={"id": flight_id, "direction": direction}, deep=True))

    return DedupResult(flights=flights, duplicates_removed=removed)


def rank_by_price(flights: list[FlightRecord]) -> list[FlightRecord]:
    """Ascending by price; sorted() is stable so equal prices keep first-seen order."""
    return sorted(flights, key=lambda f: f.price)
