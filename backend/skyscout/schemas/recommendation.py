from typing import Literal

from pydantic import BaseModel, Field

from skyscout.schemas.flight import CAMEL_CONFIG, FlightRecord, SearchStats

Strategy = Literal["best_value", "cheapest", "fastest", "most_convenient", "flexible_combo"]


class RecommendationRef(BaseModel):
    """An AI-produced recommendation pointing at flights by id only."""

    outbound_flight_id: str
    return_flight_id: str | None = None
    total_price: float
    strategy: Strategy
    confidence: float = Field(default=0.7, ge=0, le=1)
    reasoning: str
    deep_link: str | None = None
    outbound_deep_link: str | None = None
    return_deep_link: str | None = None

    model_config = CAMEL_CONFIG


class PriceAnalysis(BaseModel):
    avg_outbound_price: float
    avg_return_price: float | None = None
    is_price_good: bool
    price_trend: str

    model_config = CAMEL_CONFIG


class RouteAnalysis(BaseModel):
    best_origin: str | None = None
    origin_reason: str | None = None
    best_destination: str | None = None
    destination_reason: str | None = None

    model_config = CAMEL_CONFIG


class ScheduleAnalysis(BaseModel):
    has_good_direct_options: bool
    avg_layover_minutes: float | None = None
    best_time_to_fly: str

    model_config = CAMEL_CONFIG


class FlightAnalysis(BaseModel):
    market_summary: str
    price_analysis: PriceAnalysis
    route_analysis: RouteAnalysis = Field(default_factory=RouteAnalysis)
    schedule_analysis: ScheduleAnalysis
    key_insights: list[str] = Field(min_length=1, max_length=5)
    savings_tips: list[str] | None = None

    model_config = CAMEL_CONFIG


class AdvisorPayload(BaseModel):
    """What the recommendation producer hands back for a flight set."""

    analysis: FlightAnalysis
    recommendation: RecommendationRef
    alternatives: list[RecommendationRef] | None = Field(default=None, max_length=2)

    model_config = CAMEL_CONFIG


class OutputMetadata(BaseModel):
    searched_at: str
    total_results: int
    cheapest_price: float | None = None
    search_duration_ms: int | None = None
    agent_version: str = "3.0.0"
    dropped_candidates: int = 0
    failed_pairs: int = 0
    free_text_fallbacks: int = 0

    model_config = CAMEL_CONFIG

    @classmethod
    def from_stats(
        cls,
        searched_at: str,
        outbound: list[FlightRecord],
        return_flights: list[FlightRecord],
        stats: SearchStats,
        search_duration_ms: int,
    ) -> "OutputMetadata":
        all_flights = outbound + return_flights
        return cls(
            searched_at=searched_at,
            total_results=len(all_flights),
            cheapest_price=min((f.price for f in all_flights), default=None),
            search_duration_ms=search_duration_ms,
            dropped_candidates=stats.dropped_candidates,
            failed_pairs=stats.failed_pairs,
            free_text_fallbacks=stats.free_text_fallbacks,
        )


class FlightSearchOutput(BaseModel):
    trip_type: Literal["one-way", "round-trip"]
    outbound: list[FlightRecord]
    return_: list[FlightRecord] | None = Field(default=None, alias="return")
    analysis: FlightAnalysis
    recommendation: RecommendationRef
    alternatives: list[RecommendationRef] | None = None
    metadata: OutputMetadata

    model_config = CAMEL_CONFIG
