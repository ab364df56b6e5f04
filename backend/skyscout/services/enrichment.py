"""Recommendation enrichment — resolves flight-id references into booking links.

Recommendations only name flights by id. Once the flight set is final, the
ids are looked up in outbound + return and the link fields are backfilled.
An explicit deep_link is never overwritten, and refs that resolve to nothing
come back unchanged.

For round trips the outbound leg's link doubles as the primary CTA. That is a
best-effort heuristic, not a true combined-itinerary booking link.
"""

from skyscout.schemas.flight import FlightRecord
from skyscout.schemas.recommendation import FlightSearchOutput, RecommendationRef


def _find(flights: list[FlightRecord], flight_id: str | None) -> FlightRecord | None:
    if not flight_id:
        return None
    for f in flights:
        if f.id == flight_id:
            return f
    return None


def enrich_recommendation(
    rec: RecommendationRef,
    outbound: list[FlightRecord],
    return_flights: list[FlightRecord] | None = None,
) -> RecommendationRef:
    """Backfill link fields on one recommendation; flight ids are left alone."""
    if rec.deep_link:
        return rec

    all_flights = list(outbound) + list(return_flights or [])
    outbound_flight = _find(all_flights, rec.outbound_flight_id)
    return_flight = _find(all_flights, rec.return_flight_id)

    if outbound_flight and return_flight:
        return rec.model_copy(update={
            "outbound_deep_link": outbound_flight.deep_link,
            "return_deep_link": return_flight.deep_link,
            "deep_link": outbound_flight.deep_link,
        })

    if outbound_flight:
        return rec.model_copy(update={
            "outbound_deep_link": outbound_flight.deep_link,
            "deep_link": outbound_flight.deep_link,
        })

    return rec


def enrich_output(output: FlightSearchOutput) -> FlightSearchOutput:
    """Enrich the primary recommendation and each alternative independently."""
    outbound = output.outbound
    returns = output.return_ or []

    alternatives = None
    if output.alternatives is not None:
        alternatives = [enrich_recommendation(alt, outbound, returns) for alt in output.alternatives]

    return output.model_copy(update={
        "recommendation": enrich_recommendation(output.recommendation, outbound, returns),
        "alternatives": alternatives,
    })
