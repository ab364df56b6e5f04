"""Smart search — flight search plus AI recommendations, wrapped in an ExecutionEnvelope.

Lifecycle of one execution:

    INITIALIZED -> EXECUTING -> SUCCESS | FAILURE

There is no retry state; a failed execution is terminal and a retry is a new
call to run(). Failures come in two kinds:

- a structured failure reported by the recommendation producer keeps its
  message, code, recoverable flag and whatever usage it reported;
- an exception anywhere in orchestration becomes EXECUTION_ERROR with zeroed
  usage and the duration measured up to the failure.

The envelope covers the combined operation: flights found but analysis failed
is still a failure.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable

from skyscout.errors import ConfigurationError, ExecutionError, InvalidInputError
from skyscout.schemas.envelope import ExecutionEnvelope, ExecutionErrorInfo, ExecutionMeta
from skyscout.schemas.flight import FlightRecord, FlightSearchInput
from skyscout.schemas.recommendation import AdvisorPayload, FlightSearchOutput, OutputMetadata
from skyscout.services.enrichment import enrich_output
from skyscout.services.flight_search_service import FlightSearchService, parse_search_input

logger = logging.getLogger(__name__)


class ExecutionState(str, Enum):
    INITIALIZED = "initialized"
    EXECUTING = "executing"
    SUCCESS = "success"
    FAILURE = "failure"


_TRANSITIONS = {
    ExecutionState.INITIALIZED: {ExecutionState.EXECUTING, ExecutionState.FAILURE},
    ExecutionState.EXECUTING: {ExecutionState.SUCCESS, ExecutionState.FAILURE},
    ExecutionState.SUCCESS: set(),
    ExecutionState.FAILURE: set(),
}


@dataclass
class Execution:
    """Tracks one run through its states."""

    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: ExecutionState = ExecutionState.INITIALIZED
    started_at: float = field(default_factory=time.monotonic)

    def transition(self, new_state: ExecutionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise ValueError(f"Illegal execution transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Execution {self.execution_id}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


@dataclass
class AdvisorRequest:
    search_input: FlightSearchInput
    outbound: list[FlightRecord]
    return_flights: list[FlightRecord] | None
    user_id: str


@dataclass
class AgentResult:
    """What a recommendation producer reports back, success or structured failure."""

    success: bool
    output: AdvisorPayload | None = None
    error: ExecutionErrorInfo | None = None
    tokens_used: int = 0
    cost_usd: float = 0.0

    @classmethod
    def failure(
        cls, message: str, code: str, recoverable: bool = True, tokens_used: int = 0, cost_usd: float = 0.0,
    ) -> "AgentResult":
        return cls(
            success=False,
            error=ExecutionErrorInfo(message=message, code=code, recoverable=recoverable),
            tokens_used=tokens_used,
            cost_usd=cost_usd,
        )


RecommendationProducer = Callable[[AdvisorRequest], Awaitable[AgentResult]]


class SmartSearchService:
    """Gathers flights, asks the producer for recommendations, enriches, wraps."""

    def __init__(
        self,
        search_service: FlightSearchService | None = None,
        producer: RecommendationProducer | None = None,
    ):
        self._search_service = search_service
        self._producer = producer

    def _require_configured(self) -> tuple[FlightSearchService, RecommendationProducer]:
        if self._search_service is None or self._producer is None:
            raise ConfigurationError("SmartSearchService needs a search service and a recommendation producer")
        # Surfaces an unconfigured search service before any work starts
        _ = self._search_service.config
        return self._search_service, self._producer

    async def run(self, search_input: FlightSearchInput | dict, user_id: str = "anonymous") -> ExecutionEnvelope:
        """Execute one smart search. ConfigurationError is raised, everything else is enveloped."""
        search_service, producer = self._require_configured()
        execution = Execution()

        try:
            req = parse_search_input(search_input)
        except InvalidInputError as e:
            execution.transition(ExecutionState.FAILURE)
            logger.warning(f"Smart search {execution.execution_id} rejected: {e.message}")
            return ExecutionEnvelope.fail(
                e.message, e.code, e.recoverable,
                ExecutionMeta(execution_id=execution.execution_id, duration_ms=execution.elapsed_ms),
            )

        execution.transition(ExecutionState.EXECUTING)
        logger.info(
            f"Smart search {execution.execution_id} started for user {user_id}: "
            f"{req.fly_from} -> {req.fly_to} on {req.departure_date}"
            + (f", returning {req.return_date}" if req.return_date else "")
        )

        try:
            searched_at = datetime.now(timezone.utc).isoformat()
            search_start = time.monotonic()
            found = await search_service.search(req)
            search_ms = int((time.monotonic() - search_start) * 1000)

            outbound = found.outbound_flights
            returns = found.return_flights if req.is_round_trip else None

            result = await producer(AdvisorRequest(
                search_input=req,
                outbound=[f.model_copy(deep=True) for f in outbound],
                return_flights=[f.model_copy(deep=True) for f in returns] if returns is not None else None,
                user_id=user_id,
            ))

            meta = ExecutionMeta(
                execution_id=execution.execution_id,
                duration_ms=execution.elapsed_ms,
                tokens_used=result.tokens_used,
                cost_usd=result.cost_usd,
            )

            if not result.success or result.output is None:
                error = result.error or ExecutionErrorInfo(
                    message="Unknown error occurred", code="UNKNOWN_ERROR", recoverable=False,
                )
                execution.transition(ExecutionState.FAILURE)
                logger.warning(
                    f"Smart search {execution.execution_id} failed: [{error.code}] {error.message}"
                )
                return ExecutionEnvelope.fail(error.message, error.code, error.recoverable, meta)

            payload = result.output
            output = FlightSearchOutput(
                trip_type="round-trip" if req.is_round_trip else "one-way",
                outbound=outbound,
                return_=returns,
                analysis=payload.analysis,
                recommendation=payload.recommendation,
                alternatives=payload.alternatives,
                metadata=OutputMetadata.from_stats(
                    searched_at, outbound, returns or [], found.stats, search_ms,
                ),
            )
            enriched = enrich_output(output)

            execution.transition(ExecutionState.SUCCESS)
            logger.info(
                f"Smart search {execution.execution_id} succeeded: "
                f"{output.metadata.total_results} flights, {meta.tokens_used} tokens, {meta.duration_ms}ms"
            )
            return ExecutionEnvelope.ok(enriched, meta)

        except ConfigurationError:
            raise
        except Exception as e:
            if execution.state == ExecutionState.EXECUTING:
                execution.transition(ExecutionState.FAILURE)
            logger.error(f"Smart search {execution.execution_id} raised: {e}", exc_info=True)
            err = e if isinstance(e, ExecutionError) else ExecutionError(str(e) or type(e).__name__)
            return ExecutionEnvelope.fail(
                err.message,
                err.code,
                err.recoverable,
                ExecutionMeta(
                    execution_id=f"error-{execution.execution_id}",
                    duration_ms=execution.elapsed_ms,
                ),
            )
