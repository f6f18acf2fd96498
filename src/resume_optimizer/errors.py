"""Exception hierarchy shared by the gateway, selector and committee."""

from __future__ import annotations

PREVIEW_CHARS = 500


class ResumeOptimizerError(Exception):
    """Base class for all errors raised by resume_optimizer."""


class InvalidRequest(ResumeOptimizerError, ValueError):
    """The caller supplied a request that can never succeed. Not retried."""


class ProviderError(ResumeOptimizerError):
    """An LLM provider call failed (network, auth, rate limit, server)."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retryable = retryable


class MalformedResponse(ResumeOptimizerError, ValueError):
    """Model output could not be turned into the expected structure."""

    def __init__(self, message: str, raw: str = ""):
        self.preview = raw[:PREVIEW_CHARS]
        if self.preview:
            message = f"{message}. Response preview: {self.preview}"
        super().__init__(message)


class StageError(ResumeOptimizerError):
    """A pipeline stage failed; the original error is chained as __cause__."""

    def __init__(self, stage: str, message: str = "", round_number: int | None = None):
        self.stage = stage
        self.round_number = round_number
        where = stage if round_number is None else f"{stage} (round {round_number})"
        super().__init__(f"{where} failed: {message}" if message else f"{where} failed")
