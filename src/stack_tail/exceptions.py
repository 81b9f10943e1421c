"""Application exception classes."""

from __future__ import annotations


class StackTailError(Exception):
    """Base class for stack-tail failures."""


class ConfigError(StackTailError):
    """Raised when configuration is invalid or a time zone cannot be resolved."""


class UsageError(StackTailError):
    """Raised for CLI flag combinations argparse cannot reject on its own."""


class StackSourceError(StackTailError):
    """Raised when CloudFormation calls fail or return malformed data."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "unknown",
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.code = code


class StackNotFoundError(StackSourceError):
    """Raised when the named stack does not exist."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message, category="not_found", code=code)


class StackAuthError(StackSourceError):
    """Raised for credential, region or permission failures."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message, category="auth", code=code)


class TransientStackError(StackSourceError):
    """Raised for throttling and network failures that are worth retrying."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "transient",
        code: str | None = None,
    ) -> None:
        super().__init__(message, category=category, code=code)


class RetryBudgetExhausted(TransientStackError):
    """Raised when a transient failure outlives the retry budget."""

    def __init__(self, message: str, *, attempts: int, code: str | None = None) -> None:
        super().__init__(message, category="retry_exhausted", code=code)
        self.attempts = attempts


class TailInterrupted(StackTailError):
    """Raised inside the tail loop when an external cancellation is requested."""
