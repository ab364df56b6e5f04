"""Error taxonomy for search orchestration.

Only InvalidInputError, ConfigurationError and ExecutionError ever reach a
caller. ProviderCallError and candidate validation failures are absorbed
where they happen and only show up as counters in SearchStats.
"""


class SkyScoutError(Exception):
    """Base error carrying a machine code and a retry hint."""

    code = "UNKNOWN_ERROR"
    recoverable = False

    def __init__(self, message: str, *, code: str | None = None, recoverable: bool | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if recoverable is not None:
            self.recoverable = recoverable


class InvalidInputError(SkyScoutError):
    code = "INVALID_INPUT"
    recoverable = False


class ConfigurationError(SkyScoutError):
    code = "CONFIGURATION_ERROR"
    recoverable = False


class ProviderCallError(SkyScoutError):
    code = "PROVIDER_ERROR"
    recoverable = True


class ExecutionError(SkyScoutError):
    code = "EXECUTION_ERROR"
    recoverable = True
