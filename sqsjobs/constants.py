"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class HandlerOutcome(StrEnum):
    """
    Outcome of processing a single received message.

    - ACKED: handler settled successfully, the message is deleted
    - LEFT: handler raised or the body did not parse, the message stays
      on the queue and reappears after its visibility timeout
    """

    ACKED = "acked"
    LEFT = "left"


# SQS limits
SQS_MAX_BATCH_SIZE = 10

# Default values
DEFAULT_HEARTBEAT_INTERVAL_SECONDS = 10.0
DEFAULT_LONG_POLL_WAIT_SECONDS = 10
DEFAULT_SQS_REGION = "us-east-1"
DEFAULT_SQS_API_VERSION = "2012-11-05"

# Purge is only allowed on queues whose URL contains this marker
PURGE_URL_MARKER = "test"

# Metrics names
METRIC_MESSAGES_RECEIVED = "sqs_messages_received_total"
METRIC_MESSAGES_PROCESSED = "sqs_messages_processed_total"
METRIC_HANDLER_DURATION = "sqs_handler_duration_seconds"
METRIC_DELETE_FAILURES = "sqs_delete_failures_total"
METRIC_RECEIVE_ERRORS = "sqs_receive_errors_total"
METRIC_JOBS_CREATED = "sqs_jobs_created_total"
METRIC_POLLS_IN_FLIGHT = "sqs_long_polls_in_flight"

# Trace span names
SPAN_RECEIVE_MESSAGES = "receive_messages"
SPAN_HANDLE_JOB = "handle_job"
SPAN_COMPLETE_JOB = "complete_job"
SPAN_CREATE_JOB = "create_job"
