"""
Entry point and logging setup for toolwire.

``configure_logging()`` wires structlog onto the standard-library logging
module. The CLI calls it before doing anything else; library users who want
toolwire's console output can call it themselves.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

# Tool inputs and results can be huge (whole transcripts); keep log lines short.
_TRUNCATED_KEYS = {"content", "equation", "args", "url", "result", "error"}
_MAX_DISPLAY_LEN = 200


def _truncate_long_fields(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor: shorten long values for keys that carry tool payloads."""
    for key in _TRUNCATED_KEYS:
        if key in event_dict:
            val = event_dict[key]
            if not isinstance(val, str):
                val = repr(val)
            if len(val) > _MAX_DISPLAY_LEN:
                event_dict[key] = val[:_MAX_DISPLAY_LEN] + "... [truncated]"
    return event_dict


_logging_configured = False


def configure_logging(verbose: bool = False, colors: bool = True) -> None:
    """Configure structlog and standard-library logging.

    Safe to call more than once; only the first call takes effect.
    """
    global _logging_configured  # noqa: PLW0603
    if _logging_configured:
        return
    _logging_configured = True

    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            _truncate_long_fields,
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def main() -> None:
    """Console-script entry point."""
    from toolwire.cli.app import cli

    cli()


if __name__ == "__main__":
    main()
