"""Candidate extractor — flattens a provider response into untyped flight candidates.

Decode failures never raise: a block that does not parse contributes no
candidates and the rest of the response is still used.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from skyscout.config import settings
from skyscout.services.provider_response import (
    DirectArray,
    FreeText,
    ProviderResponse,
    StepTrace,
    ToolContent,
    decode_response,
)

logger = logging.getLogger(__name__)

# Greedy on purpose: first "[" through last "]"
_EMBEDDED_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


@dataclass
class Extraction:
    candidates: list[Any] = field(default_factory=list)
    variant: str = "unrecognized"
    used_free_text: bool = False
    decode_failures: int = 0


def extract_candidates(raw: Any, tool_name: str | None = None) -> Extraction:
    """Normalize one provider response into an order-preserving candidate list."""
    tool_name = tool_name or settings.search_tool_name
    response = decode_response(raw)
    result = Extraction(variant=type(response).__name__)

    _extract_structured(response, tool_name, result)

    if not result.candidates:
        text = _fallback_text(response)
        if text is not None:
            result.used_free_text = True
            result.candidates = _from_free_text(text, result)

    return result


def _extract_structured(response: ProviderResponse, tool_name: str, result: Extraction) -> None:
    if isinstance(response, DirectArray):
        result.candidates.extend(response.items)
    elif isinstance(response, ToolContent):
        result.candidates.extend(_from_content_blocks(response.blocks, result))
    elif isinstance(response, StepTrace):
        for step in response.steps:
            if not isinstance(step, dict):
                continue
            tool_results = step.get("toolResults") or step.get("tool_results") or []
            for tool_result in tool_results:
                if not isinstance(tool_result, dict):
                    continue
                name = tool_result.get("toolName") or tool_result.get("tool_name")
                if name != tool_name:
                    continue
                result.candidates.extend(_from_tool_output(tool_result.get("output"), result))


def _fallback_text(response: ProviderResponse) -> str | None:
    if isinstance(response, FreeText):
        return response.text
    if isinstance(response, StepTrace):
        return response.response_text
    return None


def _from_tool_output(output: Any, result: Extraction) -> list:
    if isinstance(output, dict) and isinstance(output.get("content"), list):
        return _from_content_blocks(output["content"], result)
    if isinstance(output, dict):
        data = output.get("data")
        return data if isinstance(data, list) else []
    if isinstance(output, list):
        return output
    return []


def _from_content_blocks(blocks: list, result: Extraction) -> list:
    flights: list = []
    for block in blocks:
        if not isinstance(block, dict) or block.get("type") != "text" or not block.get("text"):
            continue
        try:
            parsed = json.loads(block["text"])
        except (ValueError, TypeError):
            result.decode_failures += 1
            continue
        if isinstance(parsed, list):
            flights.extend(parsed)
        elif isinstance(parsed, dict) and isinstance(parsed.get("data"), list):
            flights.extend(parsed["data"])
    return flights


def _from_free_text(text: str, result: Extraction) -> list:
    match = _EMBEDDED_ARRAY.search(text)
    if not match:
        return []
    try:
        parsed = json.loads(match.group(0))
    except (ValueError, TypeError):
        result.decode_failures += 1
        logger.debug("Embedded JSON in free-text response did not parse")
        return []
    return parsed if isinstance(parsed, list) else []
