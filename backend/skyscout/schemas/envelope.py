from pydantic import BaseModel

from skyscout.schemas.recommendation import FlightSearchOutput


class ExecutionMeta(BaseModel):
    execution_id: str
    duration_ms: int = 0
    tokens_used: int = 0
    cost_usd: float = 0.0

    def to_wire(self) -> dict:
        return {
            "executionId": self.execution_id,
            "durationMs": self.duration_ms,
            "tokensUsed": self.tokens_used,
            "costUSD": self.cost_usd,
        }


class ExecutionErrorInfo(BaseModel):
    message: str
    code: str
    recoverable: bool = False


class ExecutionEnvelope(BaseModel):
    """Outcome of one combined search + recommendation execution."""

    success: bool
    output: FlightSearchOutput | None = None
    error: ExecutionErrorInfo | None = None
    meta: ExecutionMeta

    @classmethod
    def ok(cls, output: FlightSearchOutput, meta: ExecutionMeta) -> "ExecutionEnvelope":
        return cls(success=True, output=output, meta=meta)

    @classmethod
    def fail(cls, message: str, code: str, recoverable: bool, meta: ExecutionMeta) -> "ExecutionEnvelope":
        return cls(
            success=False,
            error=ExecutionErrorInfo(message=message, code=code, recoverable=recoverable),
            meta=meta,
        )

    def to_wire(self) -> dict:
        """JSON shape for cross-process consumers: success, output/error, meta."""
        payload: dict = {"success": self.success, "meta": self.meta.to_wire()}
        if self.success and self.output is not None:
            payload["output"] = self.output.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.error is not None:
            payload["error"] = self.error.model_dump(mode="json")
        return payload
