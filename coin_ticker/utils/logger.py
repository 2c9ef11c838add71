"""JSON-lines logging for the widget components."""

import json
import sys
import traceback
from datetime import UTC, datetime
from functools import partialmethod
from pathlib import Path
from typing import Any

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
# Only these levels carry exception details
EXCEPTION_LEVELS = frozenset({"ERROR", "CRITICAL"})


def describe_exception(exception: BaseException) -> dict[str, str]:
    """Type, message and formatted traceback of *exception*."""
    lines = traceback.format_exception(type(exception), exception, exception.__traceback__)
    return {
        "type": type(exception).__name__,
        "message": str(exception),
        "stack_trace": "".join(lines),
    }


class StructuredLogger:
    """
    Writes one JSON object per line to stdout, and optionally appends the
    same line to a file.

    Every line has timestamp (UTC, ``Z`` suffix), level, component and
    message; ``context`` and ``exception`` appear only when given. Values
    json cannot encode are stringified.
    """

    def __init__(self, component: str, file_path: str | None = None):
        self.component = component
        self.file_path = Path(file_path) if file_path else None
        if self.file_path:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def log(
        self,
        level: str,
        message: str,
        context: dict[str, Any] | None = None,
        exception: BaseException | None = None,
    ) -> None:
        """Log at *level*; unknown levels are logged as INFO."""
        level = level.upper()
        if level not in LEVELS:
            level = "INFO"

        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level,
            "component": self.component,
            "message": message,
        }
        if context:
            entry["context"] = context
        if exception is not None and level in EXCEPTION_LEVELS:
            entry["exception"] = describe_exception(exception)

        self._emit(json.dumps(entry, default=str))

    def _emit(self, line: str) -> None:
        try:
            print(line, file=sys.stdout)
            if self.file_path:
                with self.file_path.open("a") as f:
                    f.write(line + "\n")
        except OSError as e:
            print(f"Failed to write log: {e}", file=sys.stderr)

    debug = partialmethod(log, "DEBUG")
    info = partialmethod(log, "INFO")
    warning = partialmethod(log, "WARNING")
    error = partialmethod(log, "ERROR")
    critical = partialmethod(log, "CRITICAL")


def get_logger(component: str) -> StructuredLogger:
    """Build a logger for *component* that honours the LOG_FILE setting."""
    from coin_ticker.utils.config import config

    return StructuredLogger(component, file_path=config.logging.file_path)
