"""Flight advisor — the default recommendation producer.

One LLM call over the ranked flight set produces the market analysis, one
primary recommendation and up to two alternatives. Recommendations reference
flights by id only; links are filled in afterwards by enrichment.

There is no rule-based fallback: if the LLM is unavailable or answers with
something unusable, the producer reports a structured failure and the whole
smart search fails with it.
"""

import json
import logging
import statistics

from pydantic import ValidationError

from skyscout.config import settings
from skyscout.schemas.flight import FlightRecord
from skyscout.schemas.recommendation import AdvisorPayload
from skyscout.services.flight_tools import compare_flights, flight_value_score, layover_score
from skyscout.services.llm_client import LLMClient, llm_client
from skyscout.services.prompts import load_prompt
from skyscout.services.smart_search import AdvisorRequest, AgentResult

logger = logging.getLogger(__name__)

_ADVISOR_GUIDE = "flight_advisor_guide.md"

# Flights listed per direction in the prompt
MAX_FLIGHTS_IN_PROMPT = 15


class FlightAdvisor:
    """Callable recommendation producer backed by LLMClient."""

    def __init__(self, client: LLMClient | None = None):
        self._client = client or llm_client

    async def __call__(self, request: AdvisorRequest) -> AgentResult:
        if not request.outbound:
            return AgentResult.failure(
                "No outbound flights found for the requested airports and date",
                "NO_RESULTS",
                recoverable=True,
            )
        if request.return_flights is not None and not request.return_flights:
            return AgentResult.failure(
                "No return flights found for the requested airports and date",
                "NO_RESULTS",
                recoverable=True,
            )

        system_prompt = self._build_system_prompt(request)
        user_prompt = self._build_user_prompt(request)

        try:
            completion = await self._client.complete(
                system=system_prompt,
                user=user_prompt,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
                json_mode=True,
            )
        except Exception as e:
            logger.warning(f"Advisor LLM call failed: {e}")
            return AgentResult.failure(str(e), "UPSTREAM_ERROR", recoverable=True)

        try:
            payload = AdvisorPayload.model_validate(_parse_json(completion.text))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Advisor returned unusable output ({completion.provider}): {e}")
            return AgentResult.failure(
                "Recommendation output could not be parsed",
                "MALFORMED_OUTPUT",
                recoverable=True,
                tokens_used=completion.total_tokens,
                cost_usd=completion.cost_usd,
            )

        known_ids = {f.id for f in request.outbound} | {f.id for f in request.return_flights or []}
        if payload.recommendation.outbound_flight_id not in known_ids:
            logger.warning(
                f"Advisor referenced unknown outbound flight {payload.recommendation.outbound_flight_id}"
            )

        return AgentResult(
            success=True,
            output=payload,
            tokens_used=completion.total_tokens,
            cost_usd=completion.cost_usd,
        )

    # ---- prompts ----

    def _build_system_prompt(self, request: AdvisorRequest) -> str:
        req = request.search_input
        prefs = req.preferences
        trip_type = "round-trip" if req.is_round_trip else "one-way"

        prefs_str = "none given (default to best value)"
        if prefs:
            prefs_str = (
                f"priority={prefs.priority}, prefer_direct={prefs.prefer_direct_flights}, "
                f"max_layover_hours={prefs.max_layover_hours:g}, "
                f"departure_time={prefs.departure_time_preference}"
            )

        dates = req.departure_date + (f" -> {req.return_date}" if req.return_date else "")

        return f"""{load_prompt(_ADVISOR_GUIDE)}

---

SEARCH CONTEXT:
- Trip: {trip_type}
- Origins: {", ".join(req.fly_from)}
- Destinations: {", ".join(req.fly_to)}
- Dates: {dates}
- Currency: {req.currency}
- Preferences: {prefs_str}

Respond ONLY with valid JSON:
{{
  "analysis": {{
    "marketSummary": "...",
    "priceAnalysis": {{"avgOutboundPrice": 0, "avgReturnPrice": 0, "isPriceGood": true, "priceTrend": "..."}},
    "routeAnalysis": {{"bestOrigin": "...", "originReason": "...", "bestDestination": "...", "destinationReason": "..."}},
    "scheduleAnalysis": {{"hasGoodDirectOptions": true, "avgLayoverMinutes": 0, "bestTimeToFly": "..."}},
    "keyInsights": ["..."],
    "savingsTips": ["..."]
  }},
  "recommendation": {{
    "outboundFlightId": "...", "returnFlightId": "...", "totalPrice": 0,
    "strategy": "best_value|cheapest|fastest|most_convenient|flexible_combo",
    "confidence": 0.8, "reasoning": "..."
  }},
  "alternatives": [ ...up to 2 objects shaped like recommendation... ]
}}"""

    def _build_user_prompt(self, request: AdvisorRequest) -> str:
        sections = [_describe_direction("OUTBOUND", request.outbound)]
        if request.return_flights:
            sections.append(_describe_direction("RETURN", request.return_flights))
        return "\n\n".join(sections)


def _describe_direction(title: str, flights: list[FlightRecord]) -> str:
    prices = [f.price for f in flights]
    lines = [
        f"{title} ({len(flights)} offers, cheapest {min(prices):.0f}, "
        f"median {statistics.median(prices):.0f}):"
    ]
    for f in flights[:MAX_FLIGHTS_IN_PROMPT]:
        layovers = f.layovers or []
        stop_str = "direct"
        if layovers:
            parts = []
            for lo in layovers:
                part = lo.at
                if lo.duration_in_seconds:
                    rating = layover_score(lo.duration_in_seconds / 60)["rating"]
                    part += f" {lo.duration_in_seconds // 60}min/{rating}"
                parts.append(part)
            stop_str = f"{len(layovers)}stop via " + ", ".join(parts)
        lines.append(
            f"  {f.id}: {f.fly_from}->{f.fly_to} dep {f.departure.local} arr {f.arrival.local}, "
            f"{f.total_duration_in_seconds // 60}min, {stop_str}, "
            f"{f.price:.2f} {f.currency}, value={flight_value_score(f)}"
        )

    cheapest = min(flights, key=lambda f: f.price)
    fastest = min(flights, key=lambda f: f.total_duration_in_seconds)
    if cheapest.id != fastest.id:
        verdict = compare_flights(_as_option(cheapest), _as_option(fastest), priority="duration")
        lines.append(
            f"  Trade-off cheapest {cheapest.id} vs fastest {fastest.id}: "
            f"{verdict['reasoning']}, {verdict['cost_per_hour_saved']}/h saved"
        )
    return "\n".join(lines)


def _as_option(flight: FlightRecord) -> dict:
    return {
        "label": flight.id,
        "price": flight.price,
        "duration_minutes": flight.total_duration_in_seconds / 60,
        "is_direct": not flight.layovers,
    }


def _parse_json(raw: str) -> dict:
    """Parse LLM JSON, tolerating markdown fencing."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()
    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError("expected a JSON object")
    return parsed
