"""Error taxonomy for lifecycle operations.

Every error carries the ResultCode it is reported under, so handlers can turn
any LcmError into a structured response without a lookup table.
"""

from clusterlcm.models import ResultCode


class LcmError(Exception):
    """Base class for errors surfaced to callers as a result code."""

    code: ResultCode = ResultCode.INTERNAL

    def __init__(self, message: str, code: ResultCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(LcmError):
    """Malformed or missing input. Never retried."""

    code = ResultCode.INVALID_ARGUMENT


class NotFoundError(LcmError):
    """Referenced entity is missing, or a cross-reference does not match."""

    code = ResultCode.NOT_FOUND


class ConflictError(LcmError):
    """Equivalent work is already in flight."""

    code = ResultCode.ALREADY_EXISTS


class UpstreamError(LcmError):
    """Failure talking to the info service, contract service or workflow engine."""

    code = ResultCode.INTERNAL


class DerivationError(LcmError):
    """Valid input that violates a cluster configuration rule."""

    code = ResultCode.INTERNAL


InvalidConfiguration = DerivationError
