"""
SQS consumer: fetch orchestration and the consumer process entry point.

The consumer keeps `required_polls` long polls in flight at all times.
Each poll runs as its own task; when one settles the pool is topped back
up immediately, and a heartbeat tops it up on a timer in case a cycle was
lost without settling.
"""

import asyncio
import json
import signal
from typing import Any

from prometheus_client import start_http_server

from sqsjobs.config import Settings, get_settings
from sqsjobs.constants import (
    DEFAULT_HEARTBEAT_INTERVAL_SECONDS,
    DEFAULT_LONG_POLL_WAIT_SECONDS,
    DEFAULT_SQS_REGION,
    PURGE_URL_MARKER,
    SPAN_CREATE_JOB,
)
from sqsjobs.exceptions import (
    ConfigurationError,
    InstanceDisposedError,
    PurgeRefusedError,
    SqsJobsError,
)
from sqsjobs.observability.logging import bind_context, setup_logging
from sqsjobs.observability.metrics import MetricsCollector, get_metrics
from sqsjobs.observability.tracing import get_tracer, setup_tracing
from sqsjobs.queue.backend import QueueBackend
from sqsjobs.queue.sqs import SqsBackend
from sqsjobs.types.job import QueueAttributes, QueueEndpoint
from sqsjobs.worker.budget import ConcurrencyBudget
from sqsjobs.worker.dispatcher import JobDispatcher
from sqsjobs.worker.handlers import JobHandler, load_handler
from sqsjobs.worker.lifecycle import LifecycleGuard
from sqsjobs.worker.poller import LongPoller, PollPool

LOGGER_METHODS = ("info", "warning", "error")


class SqsConsumer:
    """
    Consumes jobs from one SQS queue under a concurrency limit.

    Features:
    - Limits above 10 run several parallel long polls (10 messages each)
    - Self-healing heartbeat that relaunches lost long polls
    - Delete-on-success, leave-for-redelivery on failure
    - Idempotent dispose that silences in-flight polls
    """

    def __init__(
        self,
        queue_url: str,
        concurrent_ops_limit: int,
        logger: Any,
        *,
        backend: QueueBackend | None = None,
        metrics: MetricsCollector | None = None,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL_SECONDS,
        wait_seconds: int = DEFAULT_LONG_POLL_WAIT_SECONDS,
        region: str = DEFAULT_SQS_REGION,
        endpoint_url: str | None = None,
    ):
        """
        Initialize the consumer.

        Args:
            queue_url: The SQS queue URL.
            concurrent_ops_limit: Max jobs processed at once. Up to 10, or
                a multiple of 10.
            logger: Object with info, warning and error methods.
            backend: Queue backend. Defaults to an SqsBackend created on
                first use.
            metrics: Metrics collector. Defaults to the process-wide one.
            heartbeat_interval: Seconds between orchestration heartbeats.
            wait_seconds: Long-poll wait of each receive call.
            region: AWS region for the default backend.
            endpoint_url: Endpoint override for the default backend.

        Raises:
            ConfigurationError: On a missing URL, an invalid limit or a
                logger lacking info/warning/error.
        """
        if not isinstance(queue_url, str) or not queue_url:
            raise ConfigurationError('"queue_url" option required.')

        if logger is None or not all(
            callable(getattr(logger, method, None)) for method in LOGGER_METHODS
        ):
            raise ConfigurationError("Not a proper logger object was passed.")

        self.budget = ConcurrencyBudget(concurrent_ops_limit)
        self.endpoint = QueueEndpoint.from_url(queue_url)
        self.log = logger

        self._backend = backend
        self._metrics = metrics or get_metrics()
        self._heartbeat_interval = heartbeat_interval
        self._wait_seconds = wait_seconds
        self._region = region
        self._endpoint_url = endpoint_url

        self._guard = LifecycleGuard()
        self._pool = PollPool(self.budget.required_polls)
        self._poll_tasks: set[asyncio.Task] = set()
        self._heartbeat_task: asyncio.Task | None = None
        self._handler: JobHandler | None = None
        self._poller: LongPoller | None = None
        self._disposed_event = asyncio.Event()

    @classmethod
    def from_settings(
        cls,
        logger: Any,
        settings: Settings | None = None,
        **kwargs: Any,
    ) -> "SqsConsumer":
        """Build a consumer from environment settings."""
        settings = settings or get_settings()
        return cls(
            settings.sqs_queue_url,
            settings.concurrent_ops_limit,
            logger,
            heartbeat_interval=settings.consumer_heartbeat_interval_seconds,
            wait_seconds=settings.consumer_long_poll_wait_seconds,
            region=settings.sqs_region,
            endpoint_url=settings.sqs_endpoint_url,
            **kwargs,
        )

    @property
    def disposed(self) -> bool:
        return self._guard.disposed

    @property
    def in_flight(self) -> int:
        """Long polls currently outstanding."""
        return self._pool.in_flight

    def _get_backend(self) -> QueueBackend:
        if self._backend is None:
            self._backend = SqsBackend(
                region=self._region,
                endpoint_url=self._endpoint_url,
                max_workers=self.budget.required_polls + self.budget.limit,
            )
        return self._backend

    def _ensure_active(self) -> None:
        if self._guard.disposed:
            raise InstanceDisposedError("Instance is disposed")

    async def init(self) -> QueueAttributes:
        """
        Connect to the queue and report its approximate depth.

        Returns:
            The queue attributes.

        Raises:
            Exception: Whatever the backend raised; no retry is attempted.
        """
        self._ensure_active()
        self.log.info(f"Connecting to SQS... SQS URL: {self.endpoint.url}")

        try:
            attributes = await self._get_backend().get_attributes(self.endpoint.url)
        except Exception as e:
            self.log.warning(
                f"Queue: {self.endpoint.path} Init error: {e}",
                extra={"queue": self.endpoint.path},
            )
            raise

        self.log.info(
            f"Connected to Queue: {self.endpoint.path} "
            f"Total jobs: {attributes.approximate_number_of_messages}",
            extra={"queue": self.endpoint.path},
        )
        return attributes

    async def create_job(self, data: Any) -> str:
        """
        Send a job to the queue.

        Args:
            data: JSON-serializable job data.

        Returns:
            The SQS message id.

        Raises:
            InstanceDisposedError: If the consumer was disposed.
        """
        self._ensure_active()
        self.log.info(f"Creating job for queue: {self.endpoint.path}")

        body = json.dumps(data)
        with get_tracer().start_as_current_span(SPAN_CREATE_JOB) as span:
            span.set_attribute("queue", self.endpoint.path)
            message_id = await self._get_backend().send(self.endpoint.url, body)

        self._metrics.record_job_created(self.endpoint.path)
        return message_id

    def start_fetch(self, handler: JobHandler) -> None:
        """
        Start consuming. Must be called from a running event loop.

        Args:
            handler: Called with each job's data. Returning normally acks
                the job, raising leaves it for redelivery.

        Raises:
            ConfigurationError: If handler is not callable.
            SqsJobsError: If fetching was already started.
        """
        if self._guard.disposed:
            return

        if not callable(handler):
            raise ConfigurationError("Job handler must be callable.")

        if self._handler is not None:
            raise SqsJobsError("Fetching already started for this consumer.")

        self._handler = handler
        backend = self._get_backend()

        dispatcher = JobDispatcher(
            backend=backend,
            endpoint=self.endpoint,
            handler=handler,
            guard=self._guard,
            logger=self.log,
            metrics=self._metrics,
        )
        self._poller = LongPoller(
            backend=backend,
            endpoint=self.endpoint,
            budget=self.budget,
            dispatcher=dispatcher,
            guard=self._guard,
            logger=self.log,
            metrics=self._metrics,
            wait_seconds=self._wait_seconds,
        )

        self._main_loop()

        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())

    def _main_loop(self) -> None:
        """Top the long-poll pool back up to the required count."""
        if self._guard.disposed or self._poller is None:
            return

        deficit = self._pool.deficit
        if deficit <= 0:
            return

        for _ in range(deficit):
            self._launch_poll(self._poller)

    def _launch_poll(self, poller: LongPoller) -> None:
        # Counted before the task runs so a pass in between sees it
        self._pool.acquire()
        self._metrics.set_polls_in_flight(self.endpoint.path, self._pool.in_flight)

        task = asyncio.create_task(poller.poll())
        self._poll_tasks.add(task)
        task.add_done_callback(self._on_poll_settled)

    def _on_poll_settled(self, task: asyncio.Task) -> None:
        self._poll_tasks.discard(task)
        self._pool.release()
        self._metrics.set_polls_in_flight(self.endpoint.path, self._pool.in_flight)

        if task.cancelled():
            return

        error = task.exception()
        if error is not None and not self._guard.disposed:
            self.log.error(
                f"Long poll crashed for queue: {self.endpoint.path} Error: {error}",
                exc_info=error,
            )

        self._main_loop()

    async def _heartbeat_loop(self) -> None:
        """
        Periodically re-run the orchestration pass.

        Settling polls normally keep the pool full; this covers a cycle that
        hangs or drops out without settling.
        """
        while not self._guard.disposed:
            await asyncio.sleep(self._heartbeat_interval)
            self._main_loop()

    async def purge(self) -> None:
        """
        Delete every message in the queue. Only allowed on test queues.

        Raises:
            PurgeRefusedError: If the queue URL does not contain "test".
        """
        self._ensure_active()

        if PURGE_URL_MARKER not in self.endpoint.url:
            raise PurgeRefusedError(
                f'SQS url does not include "{PURGE_URL_MARKER}", will not purge.'
            )

        self.log.info(f"Purging queue with url: {self.endpoint.url}")
        try:
            await self._get_backend().purge(self.endpoint.url)
        except Exception as e:
            self.log.warning(f"Purging queue error: {e}")

    async def dispose(self) -> None:
        """
        Stop consuming and release the backend. Safe to call repeatedly.

        Outstanding long polls are not aborted; when they return their
        results are dropped without invoking handlers or deleting.
        """
        if not self._guard.dispose():
            return

        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass
            self._heartbeat_task = None

        backend = self._backend
        self._backend = None
        self._handler = None
        self._poller = None

        if backend is not None:
            await backend.close()

        self._disposed_event.set()

    async def wait_until_disposed(self) -> None:
        """Block until dispose() has completed."""
        await self._disposed_event.wait()


def create_consumer(
    queue_url: str,
    concurrent_ops_limit: int,
    logger: Any,
    **kwargs: Any,
) -> SqsConsumer:
    """
    Create a consumer for an SQS queue.

    Args:
        queue_url: The SQS queue URL.
        concurrent_ops_limit: Concurrent jobs to run.
        logger: Object with info, warning and error methods.
        **kwargs: Extra SqsConsumer options.

    Returns:
        A new, not yet initialized, consumer.
    """
    return SqsConsumer(queue_url, concurrent_ops_limit, logger, **kwargs)


async def run_async() -> None:
    """Run the consumer asynchronously."""
    settings = get_settings()
    consumer_logger = setup_logging(settings)
    setup_tracing(settings)
    start_http_server(settings.prometheus_port)

    consumer = SqsConsumer.from_settings(consumer_logger, settings)
    handler = load_handler(settings.consumer_handler)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(consumer.dispose())
        )

    bind_context(queue=consumer.endpoint.path)

    try:
        await consumer.init()
        consumer.start_fetch(handler)
        await consumer.wait_until_disposed()
    finally:
        await consumer.dispose()


def run() -> None:
    """Run the consumer."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()
