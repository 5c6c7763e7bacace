"""
Job dispatcher.

Takes one received batch and drives every message through
parse -> handler -> delete, all messages concurrently. A message is only
deleted after its own handler returned successfully; anything else leaves
it on the queue for SQS to redeliver after the visibility timeout.
"""

import asyncio
import inspect
import json
import time
from typing import Any

from sqsjobs.constants import SPAN_COMPLETE_JOB, SPAN_HANDLE_JOB, HandlerOutcome
from sqsjobs.observability.metrics import MetricsCollector
from sqsjobs.observability.tracing import get_tracer
from sqsjobs.queue.backend import QueueBackend
from sqsjobs.types.job import QueueEndpoint, RawMessage
from sqsjobs.worker.handlers import JobHandler
from sqsjobs.worker.lifecycle import LifecycleGuard

# Outcome label for bodies that never reached the handler
PARSE_ERROR = "parse_error"


class JobDispatcher:
    """Runs the handler for each message of a batch and acks successes."""

    def __init__(
        self,
        backend: QueueBackend,
        endpoint: QueueEndpoint,
        handler: JobHandler,
        guard: LifecycleGuard,
        logger: Any,
        metrics: MetricsCollector,
    ):
        self._backend = backend
        self._endpoint = endpoint
        self._handler = handler
        self._guard = guard
        self._logger = logger
        self._metrics = metrics

    async def dispatch(self, messages: list[RawMessage]) -> list[HandlerOutcome]:
        """
        Process a batch to completion.

        One message failing never affects its siblings.

        Args:
            messages: The received batch.

        Returns:
            The outcome of each message, in batch order.
        """
        if self._guard.disposed:
            return []

        return list(
            await asyncio.gather(*(self._invoke(message) for message in messages))
        )

    async def _invoke(self, message: RawMessage) -> HandlerOutcome:
        if self._guard.disposed:
            return HandlerOutcome.LEFT

        path = self._endpoint.path

        try:
            data = json.loads(message.body)
        except ValueError:
            self._logger.warning(
                f"Failed to JSON parse job item for queue: {path} job item: {message}",
                extra={"queue": path, "message_id": message.message_id},
            )
            self._metrics.record_message_processed(path, PARSE_ERROR)
            return HandlerOutcome.LEFT

        start_time = time.monotonic()

        try:
            with get_tracer().start_as_current_span(SPAN_HANDLE_JOB) as span:
                span.set_attribute("queue", path)
                span.set_attribute("message_id", message.message_id)

                result = self._handler(data)
                if inspect.isawaitable(result):
                    await result

        except Exception as e:
            if self._guard.disposed:
                return HandlerOutcome.LEFT

            self._logger.error(
                f"Job handler failed for queue: {path}, leaving message for redelivery. Error: {e}",
                extra={"queue": path, "message_id": message.message_id},
            )
            self._metrics.record_message_processed(
                path, HandlerOutcome.LEFT, time.monotonic() - start_time
            )
            return HandlerOutcome.LEFT

        # Disposed while the handler ran: no delete, so the message is redelivered
        if self._guard.disposed:
            return HandlerOutcome.LEFT

        self._metrics.record_message_processed(
            path, HandlerOutcome.ACKED, time.monotonic() - start_time
        )
        await self._complete_job(message)
        return HandlerOutcome.ACKED

    async def _complete_job(self, message: RawMessage) -> None:
        """Delete a message once its handler succeeded. Failures are only logged."""
        if self._guard.disposed:
            return

        try:
            with get_tracer().start_as_current_span(SPAN_COMPLETE_JOB) as span:
                span.set_attribute("queue", self._endpoint.path)
                span.set_attribute("message_id", message.message_id)

                await self._backend.delete(self._endpoint.url, message.receipt_handle)

        except Exception as e:
            if self._guard.disposed:
                return

            # The message becomes visible again and is reprocessed
            self._logger.error(
                f"Deleting job failed for queue: {self._endpoint.path}. Error: {e}",
                extra={"queue": self._endpoint.path, "message_id": message.message_id},
            )
            self._metrics.record_delete_failure(self._endpoint.path)
