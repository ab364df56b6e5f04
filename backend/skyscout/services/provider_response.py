"""Known shapes of a search provider response.

A provider call may hand back any of:
- an agent step trace: {"steps": [...], "response": "..."} (possibly wrapped
  as {"success": true, "data": {...}})
- an MCP tool result: {"content": [{"type": "text", "text": "[...]"}]}
- a direct array, bare or as {"data": [...]}
- free text that may embed a JSON array

decode_response() classifies the raw value once; the extractor then works on
the variant instead of probing the raw structure everywhere.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StepTrace:
    steps: list
    response_text: str | None = None


@dataclass
class ToolContent:
    blocks: list


@dataclass
class DirectArray:
    items: list


@dataclass
class FreeText:
    text: str


@dataclass
class Unrecognized:
    raw: Any = field(default=None, repr=False)


ProviderResponse = StepTrace | ToolContent | DirectArray | FreeText | Unrecognized


def decode_response(raw: Any) -> ProviderResponse:
    if isinstance(raw, list):
        return DirectArray(raw)
    if isinstance(raw, str):
        return FreeText(raw)
    if not isinstance(raw, dict):
        return Unrecognized(raw)
    if raw.get("success") is False:
        # Failed agent run: whatever it carries is not a result
        return Unrecognized(raw)

    response_text = raw.get("response") if isinstance(raw.get("response"), str) else None

    if isinstance(raw.get("steps"), list):
        return StepTrace(raw["steps"], response_text)
    if isinstance(raw.get("content"), list):
        return ToolContent(raw["content"])

    data = raw.get("data")
    if isinstance(data, list):
        return DirectArray(data)
    if isinstance(data, dict):
        # Agent envelope: {"success": ..., "data": {"response": ..., "steps": [...]}}
        return decode_response(data)

    if response_text is not None:
        return FreeText(response_text)
    return Unrecognized(raw)
