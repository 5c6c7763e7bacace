"""
Prometheus metrics collection.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

from sqsjobs.constants import (
    METRIC_DELETE_FAILURES,
    METRIC_HANDLER_DURATION,
    METRIC_JOBS_CREATED,
    METRIC_MESSAGES_PROCESSED,
    METRIC_MESSAGES_RECEIVED,
    METRIC_POLLS_IN_FLIGHT,
    METRIC_RECEIVE_ERRORS,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the consumer.

    Collects metrics for:
    - Messages received per queue
    - Message outcomes (acked, left, parse_error)
    - Handler duration
    - Delete and receive failures
    - Long polls in flight
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.messages_received = Counter(
            METRIC_MESSAGES_RECEIVED,
            "Total number of messages received",
            ["queue"],
            registry=self._registry,
        )

        self.messages_processed = Counter(
            METRIC_MESSAGES_PROCESSED,
            "Total number of messages processed, by outcome",
            ["queue", "outcome"],
            registry=self._registry,
        )

        self.handler_duration = Histogram(
            METRIC_HANDLER_DURATION,
            "Job handler duration in seconds",
            ["queue", "outcome"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
            registry=self._registry,
        )

        self.delete_failures = Counter(
            METRIC_DELETE_FAILURES,
            "Total number of failed message deletes",
            ["queue"],
            registry=self._registry,
        )

        self.receive_errors = Counter(
            METRIC_RECEIVE_ERRORS,
            "Total number of failed receive calls",
            ["queue"],
            registry=self._registry,
        )

        self.jobs_created = Counter(
            METRIC_JOBS_CREATED,
            "Total number of jobs sent to the queue",
            ["queue"],
            registry=self._registry,
        )

        self.polls_in_flight = Gauge(
            METRIC_POLLS_IN_FLIGHT,
            "Number of long-poll requests currently outstanding",
            ["queue"],
            registry=self._registry,
        )

    def record_messages_received(self, queue: str, count: int) -> None:
        """Record a received batch."""
        self.messages_received.labels(queue=queue).inc(count)

    def record_message_processed(
        self,
        queue: str,
        outcome: str,
        duration_seconds: float | None = None,
    ) -> None:
        """Record the outcome of one message."""
        self.messages_processed.labels(queue=queue, outcome=outcome).inc()
        if duration_seconds is not None:
            self.handler_duration.labels(queue=queue, outcome=outcome).observe(
                duration_seconds
            )

    def record_delete_failure(self, queue: str) -> None:
        self.delete_failures.labels(queue=queue).inc()

    def record_receive_error(self, queue: str) -> None:
        self.receive_errors.labels(queue=queue).inc()

    def record_job_created(self, queue: str) -> None:
        self.jobs_created.labels(queue=queue).inc()

    def set_polls_in_flight(self, queue: str, count: int) -> None:
        """Update the outstanding long-poll gauge."""
        self.polls_in_flight.labels(queue=queue).set(count)


def get_metrics() -> MetricsCollector:
    """
    Get the process-wide metrics collector, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
