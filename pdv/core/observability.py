"""
Observability port for domain workflows.

Workflows report what happened through an ``EventSink`` handed to them;
the sink decides where events go (structured logs by default).
"""

from typing import Any, Protocol

import structlog


class EventSink(Protocol):
    """Receives named domain events with structured fields."""

    def emit(self, event: str, **fields: Any) -> None:
        ...


class StructlogEventSink:
    """Writes domain events as structlog log lines.

    Events ending in ``_failed`` or ``_rejected`` go out as errors,
    ``_skipped`` and ``_negative`` as warnings, everything else as info.
    """

    def __init__(self, logger_name: str = "pdv.events"):
        self.logger = structlog.get_logger(logger_name)

    def emit(self, event: str, **fields: Any) -> None:
        if event.endswith(("_failed", "_rejected")):
            self.logger.error(event, **fields)
        elif event.endswith(("_skipped", "_negative")):
            self.logger.warning(event, **fields)
        else:
            self.logger.info(event, **fields)


default_event_sink = StructlogEventSink()
