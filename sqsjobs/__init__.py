"""
SQS Job Consumer

A concurrent long-poll consumer for AWS SQS: pulls jobs under a concurrency
budget, invokes a handler per job, and deletes only what was handled
successfully.
"""

__version__ = "1.0.0"

from sqsjobs.exceptions import (
    ConfigurationError,
    InstanceDisposedError,
    PurgeRefusedError,
    SqsJobsError,
)
from sqsjobs.worker.main import SqsConsumer, create_consumer

__all__ = [
    "create_consumer",
    "SqsConsumer",
    "SqsJobsError",
    "ConfigurationError",
    "InstanceDisposedError",
    "PurgeRefusedError",
]
