"""Flight search service — fans airport pairs out to the search provider and merges results.

Per-pair failures are absorbed: a provider error, timeout or unreadable
response only empties that pair's contribution and bumps a counter. Nothing
raised by the provider escapes search().
"""

import asyncio
import logging
import time
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from skyscout.config import settings
from skyscout.errors import ConfigurationError, InvalidInputError
from skyscout.schemas.flight import FlightRecord, FlightSearchInput, FlightSearchResponse, SearchStats
from skyscout.services.candidate_extractor import extract_candidates
from skyscout.services.candidate_validator import validate_candidates
from skyscout.services.pair_expander import SearchPair, expand_pairs, expand_return_pairs
from skyscout.services.ranking import dedupe_flights, rank_by_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchQuery:
    """One provider call: a single airport pair on a single date."""

    origin: str
    destination: str
    departure_date: str
    return_date: str | None = None
    currency: str = "EUR"
    max_results: int = 5

    @property
    def prompt(self) -> str:
        prompt = f"Find cheapest flights from {self.origin} to {self.destination} departing on {self.departure_date}"
        if self.return_date:
            prompt += f" and returning on {self.return_date}"
        prompt += f". Return max {self.max_results} options. Ensure you get real data from the tools."
        return prompt


SearchFn = Callable[[SearchQuery], Awaitable[Any]]


@dataclass
class SearchConfig:
    search_fn: SearchFn
    logger: Any = field(default_factory=lambda: logging.getLogger("skyscout.search"))
    max_concurrency: int = field(default_factory=lambda: settings.max_concurrent_searches)
    tool_name: str = field(default_factory=lambda: settings.search_tool_name)


@dataclass
class PairOutcome:
    pair: SearchPair
    flights: list[FlightRecord] = field(default_factory=list)
    failed: bool = False
    candidates: int = 0
    dropped: int = 0
    used_free_text: bool = False


def parse_search_input(data: FlightSearchInput | dict) -> FlightSearchInput:
    """Validate a raw request; any schema problem becomes InvalidInputError."""
    if isinstance(data, FlightSearchInput):
        return data
    try:
        return FlightSearchInput.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidInputError(f"Invalid search request: {problems}") from e


class FlightSearchService:
    """Searches every origin/destination combination and ranks the merged offers."""

    def __init__(self, config: SearchConfig | None = None):
        self._config = config

    def configure(self, config: SearchConfig) -> None:
        if config is None or config.search_fn is None:
            raise ConfigurationError("SearchConfig.search_fn is required")
        self._config = config

    @property
    def config(self) -> SearchConfig:
        if self._config is None or self._config.search_fn is None:
            raise ConfigurationError(
                "FlightSearchService is not configured. Call configure() first."
            )
        return self._config

    async def search(self, search_input: FlightSearchInput | dict) -> FlightSearchResponse:
        """
        Execute the search for one request.

        One-way returns {tripType: "one-way", flights}; round-trip searches the
        swapped pairs on the return date concurrently and returns
        {tripType: "round-trip", outbound, return}.
        """
        config = self.config
        log = config.logger
        req = parse_search_input(search_input)
        start_time = time.monotonic()

        # Per-request; never shared across requests
        semaphore = asyncio.Semaphore(config.max_concurrency) if config.max_concurrency > 0 else None

        trip_type = "round-trip" if req.is_round_trip else "one-way"
        log.info(f"Starting flight search {req.fly_from} -> {req.fly_to} ({trip_type})")

        outbound_pairs = expand_pairs(req.fly_from, req.fly_to)

        if req.is_round_trip:
            return_pairs = expand_return_pairs(req.fly_from, req.fly_to)
            (outbound, out_stats), (returns, ret_stats) = await asyncio.gather(
                self._search_direction(outbound_pairs, req.departure_date, "outbound", req, semaphore),
                self._search_direction(return_pairs, req.return_date, "return", req, semaphore),
            )
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            log.info(
                f"Round-trip search completed: outbound={len(outbound)} return={len(returns)} "
                f"duration_ms={elapsed_ms}"
            )
            return FlightSearchResponse(
                trip_type="round-trip",
                outbound=outbound,
                return_=returns,
                stats=out_stats.merge(ret_stats),
            )

        flights, stats = await self._search_direction(
            outbound_pairs, req.departure_date, "outbound", req, semaphore
        )
        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        log.info(f"One-way search completed: total_found={len(flights)} duration_ms={elapsed_ms}")
        return FlightSearchResponse(trip_type="one-way", flights=flights, stats=stats)

    async def _search_direction(
        self,
        pairs: list[SearchPair],
        departure_date: str,
        direction: str,
        req: FlightSearchInput,
        semaphore: asyncio.Semaphore | None,
    ) -> tuple[list[FlightRecord], SearchStats]:
        """Join all pairs of one direction, then dedupe and rank the merged set."""
        coros = [
            self._search_pair(
                pair,
                SearchQuery(
                    origin=pair.origin,
                    destination=pair.destination,
                    departure_date=departure_date,
                    currency=req.currency,
                    max_results=req.max_results,
                ),
                semaphore,
            )
            for pair in pairs
        ]
        results = await asyncio.gather(*coros, return_exceptions=True)

        outcomes: list[PairOutcome] = []
        for idx, result in enumerate(results):
            if isinstance(result, BaseException):
                self.config.logger.warning(f"Search task failed for {pairs[idx].label}: {result}")
                outcomes.append(PairOutcome(pairs[idx], failed=True))
            else:
                outcomes.append(result)

        deduped = dedupe_flights([o.flights for o in outcomes], direction)
        ranked = rank_by_price(deduped.flights)

        stats = SearchStats(
            pairs=len(pairs),
            failed_pairs=sum(1 for o in outcomes if o.failed),
            candidates=sum(o.candidates for o in outcomes),
            dropped_candidates=sum(o.dropped for o in outcomes),
            free_text_fallbacks=sum(1 for o in outcomes if o.used_free_text),
            duplicates_removed=deduped.duplicates_removed,
        )
        if stats.failed_pairs or stats.dropped_candidates:
            self.config.logger.warning(
                f"{direction}: {stats.failed_pairs}/{stats.pairs} pairs failed, "
                f"{stats.dropped_candidates}/{stats.candidates} candidates dropped"
            )
        return ranked, stats

    async def _search_pair(
        self,
        pair: SearchPair,
        query: SearchQuery,
        semaphore: asyncio.Semaphore | None,
    ) -> PairOutcome:
        config = self.config
        log = config.logger
        log.info(f"Searching {pair.label} on {query.departure_date}")

        try:
            async with semaphore if semaphore is not None else nullcontext():
                raw = await config.search_fn(query)
            extraction = extract_candidates(raw, config.tool_name)
            validation = validate_candidates(extraction.candidates, default_currency=query.currency)
        except Exception as e:
            log.error(f"Search failed for {pair.label}: {e}")
            return PairOutcome(pair, failed=True)

        if extraction.used_free_text:
            log.warning(f"{pair.label}: no structured results, used free-text fallback")
        log.info(f"Validated {len(validation.flights)} flights for {pair.label}")

        return PairOutcome(
            pair,
            flights=validation.flights,
            candidates=len(extraction.candidates),
            dropped=validation.dropped,
            used_free_text=extraction.used_free_text,
        )
