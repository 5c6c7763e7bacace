"""
Long-poll worker.

A LongPoller runs one receive cycle: a single long-poll receive of up to
`batch_size` messages, then the whole batch through the dispatcher. The
orchestrator in sqsjobs.worker.main runs as many cycles side by side as the
concurrency budget requires and starts a new one as each settles.
"""

from typing import Any

from sqsjobs.constants import SPAN_RECEIVE_MESSAGES
from sqsjobs.observability.metrics import MetricsCollector
from sqsjobs.observability.tracing import get_tracer
from sqsjobs.queue.backend import QueueBackend
from sqsjobs.types.job import QueueEndpoint
from sqsjobs.worker.budget import ConcurrencyBudget
from sqsjobs.worker.dispatcher import JobDispatcher
from sqsjobs.worker.lifecycle import LifecycleGuard


class PollPool:
    """
    Count of long polls in flight, bounded by the budget.

    Only touched from the event loop thread.
    """

    def __init__(self, required: int):
        self.required = required
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def deficit(self) -> int:
        return self.required - self._in_flight

    def acquire(self) -> None:
        if self._in_flight >= self.required:
            raise RuntimeError(
                f"Long poll pool exhausted ({self._in_flight}/{self.required})"
            )
        self._in_flight += 1

    def release(self) -> None:
        if self._in_flight <= 0:
            raise RuntimeError("Long poll pool released more than acquired")
        self._in_flight -= 1


class LongPoller:
    """Runs receive -> dispatch cycles against one queue."""

    def __init__(
        self,
        backend: QueueBackend,
        endpoint: QueueEndpoint,
        budget: ConcurrencyBudget,
        dispatcher: JobDispatcher,
        guard: LifecycleGuard,
        logger: Any,
        metrics: MetricsCollector,
        wait_seconds: int,
    ):
        self._backend = backend
        self._endpoint = endpoint
        self._budget = budget
        self._dispatcher = dispatcher
        self._guard = guard
        self._logger = logger
        self._metrics = metrics
        self._wait_seconds = wait_seconds

    async def poll(self) -> int:
        """
        Run one receive cycle.

        Never raises: receive errors are logged and the orchestrator's next
        pass makes up for the lost cycle. Messages stay on the queue, so
        nothing is lost.

        Returns:
            Number of messages dispatched.
        """
        path = self._endpoint.path

        try:
            with get_tracer().start_as_current_span(SPAN_RECEIVE_MESSAGES) as span:
                span.set_attribute("queue", path)
                span.set_attribute("max_messages", self._budget.batch_size)

                messages = await self._backend.receive(
                    self._endpoint.url,
                    self._budget.batch_size,
                    self._wait_seconds,
                )

            if self._guard.disposed:
                return 0

            if not messages:
                return 0

            self._logger.info(
                f"Fetched {len(messages)} jobs to process for queue: {path}",
                extra={"queue": path, "count": len(messages)},
            )
            self._metrics.record_messages_received(path, len(messages))

            await self._dispatcher.dispatch(messages)
            return len(messages)

        except Exception as e:
            if self._guard.disposed:
                return 0

            self._metrics.record_receive_error(path)
            self._logger.error(
                f"Error on receiveMessage for queue: {path} Error: {e}",
                extra={"queue": path},
                exc_info=e,
            )
            return 0
