"""Candidate validator — coerces raw candidates into FlightRecord, dropping the rest."""

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from skyscout.schemas.flight import FlightRecord

logger = logging.getLogger(__name__)

SYNTHETIC_ID_PREFIX = "kiwi"


@dataclass
class ValidationResult:
    flights: list[FlightRecord] = field(default_factory=list)
    dropped: int = 0


def synthesize_id(candidate: dict, index: int, batch_stamp: int) -> str:
    """Opaque id from origin, destination, price, batch position and batch timestamp.

    Hex digest only, so the id is URL-safe and carries no separator characters
    beyond the prefix dash.
    """
    seed_str = (
        f"{candidate.get('flyFrom', candidate.get('fly_from'))}|"
        f"{candidate.get('flyTo', candidate.get('fly_to'))}|"
        f"{candidate.get('price')}|{index}|{batch_stamp}"
    )
    digest = hashlib.md5(seed_str.encode()).hexdigest()[:20]
    return f"{SYNTHETIC_ID_PREFIX}-{digest}"


def validate_candidates(
    candidates: list[Any],
    default_currency: str | None = None,
    batch_stamp: int | None = None,
) -> ValidationResult:
    """Validate a batch in order; one bad candidate never aborts the batch."""
    if batch_stamp is None:
        batch_stamp = time.time_ns()

    result = ValidationResult()
    for index, candidate in enumerate(candidates):
        if not isinstance(candidate, dict):
            result.dropped += 1
            continue

        raw = dict(candidate)
        if not raw.get("id"):
            raw["id"] = synthesize_id(raw, index, batch_stamp)
        elif not isinstance(raw["id"], str):
            raw["id"] = str(raw["id"])
        if default_currency and not raw.get("currency"):
            raw["currency"] = default_currency

        try:
            result.flights.append(FlightRecord.model_validate(raw))
        except ValidationError as e:
            result.dropped += 1
            logger.debug(f"Dropped candidate {index}: {e.error_count()} validation errors")

    return result
