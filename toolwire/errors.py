"""Exception hierarchy shared across toolwire subsystems."""

from __future__ import annotations


class ToolwireError(Exception):
    """Base class for failures that toolwire raises on purpose."""


class RetryExhaustedError(ToolwireError):
    """Every attempt of a retried operation failed.

    Only the last failure is kept; earlier ones were logged as they happened.
    """

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Operation failed after {attempts} attempts: {_message_of(last_error)}"
        )


class RegistryMismatchError(ToolwireError):
    """Declared tools and registered handlers disagree at startup."""

    def __init__(self, missing_handlers: list[str], undeclared_handlers: list[str]):
        self.missing_handlers = missing_handlers
        self.undeclared_handlers = undeclared_handlers
        parts = []
        if missing_handlers:
            parts.append(f"declared without a handler: {', '.join(missing_handlers)}")
        if undeclared_handlers:
            parts.append(f"handler without a declaration: {', '.join(undeclared_handlers)}")
        super().__init__("Tool registry mismatch: " + "; ".join(parts))


def _message_of(error: BaseException) -> str:
    return str(error) or type(error).__name__
