"""Logging setup and redaction helpers."""

import logging
import re
import sys
from typing import Any

_SENSITIVE_KEYS = re.compile(r"(token|secret|api[_-]?key|password|authorization|traffic[_-]?code)", re.IGNORECASE)

REDACTED = "***REDACTED***"


def configure_logging(level: str = "INFO") -> None:
    """Send logs to stderr (stdout carries the MCP stdio stream)."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    # Suppress noisy library logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("mcp.server.lowlevel.server").setLevel(logging.WARNING)


def redact_arguments(arguments: Any) -> Any:
    """Copy of tool arguments with secret-looking values replaced, safe to log."""
    if isinstance(arguments, dict):
        redacted: dict[str, Any] = {}
        for key, value in arguments.items():
            if _SENSITIVE_KEYS.search(str(key)):
                redacted[key] = REDACTED
            else:
                redacted[key] = redact_arguments(value)
        return redacted
    if isinstance(arguments, list):
        return [redact_arguments(item) for item in arguments]
    return arguments
