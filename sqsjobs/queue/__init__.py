"""
Queue backend module.
Contains the backend interface and the AWS SQS implementation.
"""

from sqsjobs.queue.backend import QueueBackend
from sqsjobs.queue.sqs import SqsBackend

__all__ = [
    "QueueBackend",
    "SqsBackend",
]
