import asyncio

import pytest

from skyscout.errors import ConfigurationError, ExecutionError
from skyscout.schemas.recommendation import AdvisorPayload
from skyscout.services.flight_search_service import FlightSearchService
from skyscout.services.smart_search import (
    AgentResult,
    Execution,
    ExecutionState,
    SmartSearchService,
)

ANALYSIS = {
    "marketSummary": "Plenty of cheap options",
    "priceAnalysis": {"avgOutboundPrice": 98.3, "isPriceGood": True, "priceTrend": "stable"},
    "routeAnalysis": {"bestOrigin": "MXP"},
    "scheduleAnalysis": {"hasGoodDirectOptions": True, "bestTimeToFly": "morning"},
    "keyInsights": ["MXP is cheapest"],
}

REQUEST = {"flyFrom": ["MXP", "LIN"], "flyTo": ["BCN"], "departureDate": "2026-11-02"}


class CheapestProducer:
    """Recommends the cheapest outbound (and return) flight."""

    def __init__(self, deep_link=None):
        self.deep_link = deep_link
        self.requests = []

    async def __call__(self, request):
        self.requests.append(request)
        rec = {
            "outboundFlightId": request.outbound[0].id,
            "totalPrice": request.outbound[0].price,
            "strategy": "cheapest",
            "confidence": 0.9,
            "reasoning": "Lowest fare",
        }
        if request.return_flights:
            rec["returnFlightId"] = request.return_flights[0].id
        if self.deep_link:
            rec["deepLink"] = self.deep_link
        payload = AdvisorPayload.model_validate({
            "analysis": ANALYSIS,
            "recommendation": rec,
            "alternatives": [{**rec, "outboundFlightId": request.outbound[-1].id, "strategy": "fastest"}],
        })
        return AgentResult(success=True, output=payload, tokens_used=1234, cost_usd=0.0042)


@pytest.fixture
def scenario_provider(candidate, provider_factory):
    return provider_factory({
        ("MXP", "BCN"): [candidate(price=120), candidate(price=80, dep_local="2026-11-02T14:00:00")],
        ("LIN", "BCN"): [candidate(fly_from="LIN", price=95)],
        ("BCN", "MXP"): [candidate(fly_from="BCN", fly_to="MXP", price=60)],
    })


def test_success_envelope_with_enriched_recommendation(scenario_provider, make_service):
    smart = SmartSearchService(make_service(scenario_provider), CheapestProducer())

    envelope = asyncio.run(smart.run(REQUEST, user_id="u1"))

    assert envelope.success
    output = envelope.output
    assert [f.price for f in output.outbound] == [80, 95, 120]
    assert output.recommendation.deep_link == output.outbound[0].deep_link
    assert output.recommendation.outbound_deep_link == output.outbound[0].deep_link
    assert output.alternatives[0].deep_link == output.outbound[-1].deep_link
    assert output.metadata.total_results == 3
    assert output.metadata.cheapest_price == 80
    assert envelope.meta.tokens_used == 1234
    assert envelope.meta.cost_usd == 0.0042


def test_wire_shape(scenario_provider, make_service):
    smart = SmartSearchService(make_service(scenario_provider), CheapestProducer())

    wire = asyncio.run(smart.run(REQUEST)).to_wire()

    assert set(wire) == {"success", "output", "meta"}
    assert set(wire["meta"]) == {"executionId", "durationMs", "tokensUsed", "costUSD"}
    assert wire["output"]["tripType"] == "one-way"
    assert wire["output"]["recommendation"]["deepLink"].startswith("https://book/")
    assert "return" not in wire["output"]


def test_round_trip_output(scenario_provider, make_service):
    smart = SmartSearchService(make_service(scenario_provider), CheapestProducer())
    req = {**REQUEST, "flyFrom": ["MXP"], "returnDate": "2026-11-09"}

    envelope = asyncio.run(smart.run(req))

    output = envelope.output
    assert output.trip_type == "round-trip"
    assert [f.direction for f in output.return_] == ["return"]
    assert output.recommendation.return_deep_link == output.return_[0].deep_link
    assert output.recommendation.deep_link == output.outbound[0].deep_link
    assert envelope.to_wire()["output"]["return"][0]["direction"] == "return"


def test_explicit_link_survives(scenario_provider, make_service):
    smart = SmartSearchService(make_service(scenario_provider), CheapestProducer(deep_link="https://custom"))

    envelope = asyncio.run(smart.run(REQUEST))

    assert envelope.output.recommendation.deep_link == "https://custom"


def test_producer_gets_copies(scenario_provider, make_service):
    producer = CheapestProducer()
    smart = SmartSearchService(make_service(scenario_provider), producer)

    envelope = asyncio.run(smart.run(REQUEST))

    producer.requests[0].outbound[0].price = 1
    assert envelope.output.outbound[0].price == 80


def test_structured_producer_failure_is_kept(scenario_provider, make_service):
    async def failing(request):
        return AgentResult.failure("model timed out", "UPSTREAM_ERROR", recoverable=True, tokens_used=50, cost_usd=0.01)

    envelope = asyncio.run(SmartSearchService(make_service(scenario_provider), failing).run(REQUEST))

    assert not envelope.success
    assert envelope.output is None
    assert envelope.error.code == "UPSTREAM_ERROR"
    assert envelope.error.recoverable is True
    assert envelope.meta.tokens_used == 50
    assert envelope.meta.cost_usd == 0.01


def test_failure_without_error_details(scenario_provider, make_service):
    async def vague(request):
        return AgentResult(success=False)

    envelope = asyncio.run(SmartSearchService(make_service(scenario_provider), vague).run(REQUEST))

    assert envelope.error.code == "UNKNOWN_ERROR"
    assert envelope.error.message == "Unknown error occurred"


def test_exception_becomes_execution_error(scenario_provider, make_service):
    async def exploding(request):
        raise RuntimeError("agent crashed")

    envelope = asyncio.run(SmartSearchService(make_service(scenario_provider), exploding).run(REQUEST))

    assert not envelope.success
    assert envelope.error.code == "EXECUTION_ERROR"
    assert envelope.error.message == "agent crashed"
    assert envelope.meta.tokens_used == 0
    assert envelope.meta.cost_usd == 0
    assert envelope.meta.execution_id.startswith("error-")
    assert envelope.meta.duration_ms >= 0
    assert "output" not in envelope.to_wire()


def test_invalid_input_envelope(scenario_provider, make_service):
    smart = SmartSearchService(make_service(scenario_provider), CheapestProducer())

    envelope = asyncio.run(smart.run({**REQUEST, "flyTo": []}))

    assert not envelope.success
    assert envelope.error.code == "INVALID_INPUT"
    assert envelope.error.recoverable is False
    assert scenario_provider.calls == []


def test_failed_pair_still_succeeds_and_is_reported(candidate, provider_factory, make_service):
    provider = provider_factory({
        ("MXP", "BCN"): [candidate(price=120)],
        ("LIN", "BCN"): ConnectionError("reset"),
    })

    envelope = asyncio.run(SmartSearchService(make_service(provider), CheapestProducer()).run(REQUEST))

    assert envelope.success
    assert envelope.output.metadata.failed_pairs == 1
    assert [f.price for f in envelope.output.outbound] == [120]


def test_unconfigured_raises_synchronously(provider_factory):
    with pytest.raises(ConfigurationError):
        asyncio.run(SmartSearchService().run(REQUEST))

    with pytest.raises(ConfigurationError):
        asyncio.run(SmartSearchService(FlightSearchService(), CheapestProducer()).run(REQUEST))


def test_execution_transitions():
    execution = Execution()
    assert execution.state == ExecutionState.INITIALIZED

    execution.transition(ExecutionState.EXECUTING)
    execution.transition(ExecutionState.SUCCESS)

    with pytest.raises(ValueError):
        execution.transition(ExecutionState.EXECUTING)
    with pytest.raises(ValueError):
        Execution().transition(ExecutionState.SUCCESS)


def test_raised_execution_error_keeps_its_code(scenario_provider, make_service):
    async def timing_out(request):
        raise ExecutionError("advisor timed out", code="TIMEOUT", recoverable=False)

    envelope = asyncio.run(SmartSearchService(make_service(scenario_provider), timing_out).run(REQUEST))

    assert envelope.error.code == "TIMEOUT"
    assert envelope.error.message == "advisor timed out"
    assert envelope.error.recoverable is False
