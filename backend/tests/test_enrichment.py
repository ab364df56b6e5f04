import pytest

from skyscout.schemas.flight import FlightRecord
from skyscout.schemas.recommendation import (
    FlightAnalysis,
    FlightSearchOutput,
    OutputMetadata,
    RecommendationRef,
)
from skyscout.services.enrichment import enrich_output, enrich_recommendation


@pytest.fixture
def flights(candidate):
    out = FlightRecord.model_validate(candidate(flight_id="F1", deepLink="https://book/F1"))
    ret = FlightRecord.model_validate(
        candidate(fly_from="BCN", fly_to="MXP", flight_id="R1", deepLink="https://book/R1")
    )
    return out, ret


def _rec(**kwargs) -> RecommendationRef:
    data = {"outbound_flight_id": "F1", "total_price": 100, "strategy": "cheapest", "reasoning": "cheap"}
    data.update(kwargs)
    return RecommendationRef(**data)


def test_one_way_fills_primary_and_outbound_link(flights):
    out, _ = flights

    enriched = enrich_recommendation(_rec(deep_link=""), [out])

    assert enriched.deep_link == "https://book/F1"
    assert enriched.outbound_deep_link == "https://book/F1"
    assert enriched.return_deep_link is None
    assert enriched.outbound_flight_id == "F1"


def test_round_trip_uses_outbound_link_as_primary(flights):
    out, ret = flights

    enriched = enrich_recommendation(_rec(return_flight_id="R1"), [out], [ret])

    assert enriched.deep_link == "https://book/F1"
    assert enriched.outbound_deep_link == "https://book/F1"
    assert enriched.return_deep_link == "https://book/R1"
    assert enriched.return_flight_id == "R1"


def test_unresolved_return_falls_back_to_one_way(flights):
    out, ret = flights

    enriched = enrich_recommendation(_rec(return_flight_id="missing"), [out], [ret])

    assert enriched.deep_link == "https://book/F1"
    assert enriched.return_deep_link is None


def test_explicit_link_is_never_overwritten(flights):
    out, ret = flights
    rec = _rec(return_flight_id="R1", deep_link="https://custom")

    enriched = enrich_recommendation(rec, [out], [ret])

    assert enriched == rec
    assert enriched.deep_link == "https://custom"


def test_nothing_resolves_is_a_no_op(flights):
    out, ret = flights
    rec = _rec(outbound_flight_id="nope", return_flight_id="nada")

    enriched = enrich_recommendation(rec, [out], [ret])

    assert enriched == rec


def test_lookup_spans_both_directions(flights):
    out, ret = flights

    # Outbound id pointing into the return list still resolves
    enriched = enrich_recommendation(_rec(outbound_flight_id="R1"), [out], [ret])

    assert enriched.deep_link == "https://book/R1"


def test_enrich_output_covers_alternatives(flights):
    out, ret = flights
    output = FlightSearchOutput(
        trip_type="round-trip",
        outbound=[out],
        return_=[ret],
        analysis=FlightAnalysis.model_validate({
            "marketSummary": "ok",
            "priceAnalysis": {"avgOutboundPrice": 100, "isPriceGood": True, "priceTrend": "flat"},
            "scheduleAnalysis": {"hasGoodDirectOptions": True, "bestTimeToFly": "morning"},
            "keyInsights": ["cheap"],
        }),
        recommendation=_rec(return_flight_id="R1"),
        alternatives=[_rec(strategy="fastest", deep_link="https://custom"), _rec(outbound_flight_id="zzz")],
        metadata=OutputMetadata(searched_at="2026-10-19T00:00:00Z", total_results=2),
    )

    enriched = enrich_output(output)

    assert enriched.recommendation.return_deep_link == "https://book/R1"
    assert enriched.alternatives[0].deep_link == "https://custom"
    assert enriched.alternatives[1].deep_link is None
    assert output.recommendation.deep_link is None
