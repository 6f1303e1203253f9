"""
Ordered forward/compensating steps for multi-table workflows.

The store only guarantees atomicity per single-table call, so a workflow
that touches several tables records an undo action for each step it
completes. When a later step fails, the recorded undo actions run in
reverse order and the original error is raised again. If any undo action
fails as well, a CompensationError carries every error so the caller can
reconcile by hand.
"""

from typing import Any, Callable, List, Optional, Tuple

from pdv.core.exceptions import CompensationError
from pdv.core.observability import EventSink, default_event_sink


class Saga:
    def __init__(self, name: str, events: Optional[EventSink] = None, **context: Any):
        self.name = name
        self.events = events or default_event_sink
        self.context = context
        self._completed: List[Tuple[str, Callable[[], Any]]] = []

    def step(
        self,
        name: str,
        action: Callable[[], Any],
        compensate: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Run ``action``; on success remember ``compensate(result)`` for rollback."""
        try:
            result = action()
        except Exception as exc:
            self._rollback(name, exc)
            raise
        if compensate is not None:
            self._completed.append((name, lambda: compensate(result)))
        return result

    def _rollback(self, failed_step: str, error: Exception) -> None:
        self.events.emit(
            "saga.step_failed",
            saga=self.name,
            step=failed_step,
            error=str(error),
            **self.context,
        )
        failures: List[Exception] = []
        for name, undo in reversed(self._completed):
            try:
                undo()
            except Exception as undo_error:
                failures.append(undo_error)
                self.events.emit(
                    "saga.compensation_failed",
                    saga=self.name,
                    step=name,
                    error=str(undo_error),
                    **self.context,
                )
            else:
                self.events.emit("saga.step_compensated", saga=self.name, step=name, **self.context)
        self._completed.clear()
        if failures:
            raise CompensationError(error, failures, failed_step) from error
