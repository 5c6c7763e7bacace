"""
Type definitions for the SQS job consumer.
"""

from sqsjobs.types.job import (
    QueueAttributes,
    QueueEndpoint,
    RawMessage,
)

__all__ = [
    "QueueEndpoint",
    "RawMessage",
    "QueueAttributes",
]
