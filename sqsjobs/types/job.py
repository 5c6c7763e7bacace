"""
Job-related type definitions for internal use.
"""

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse


@dataclass(frozen=True)
class QueueEndpoint:
    """
    Identifies the remote queue.
    The path is kept separately because it is what shows up in logs.
    """

    url: str
    path: str

    @classmethod
    def from_url(cls, url: str) -> "QueueEndpoint":
        """Build an endpoint from a queue URL."""
        return cls(url=url, path=urlparse(url).path)


@dataclass
class RawMessage:
    """
    A received SQS message envelope.
    The receipt handle is required to delete this particular delivery.
    """

    message_id: str
    body: str
    receipt_handle: str
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_sqs(cls, message: dict[str, Any]) -> "RawMessage":
        """Build from one entry of a ReceiveMessage response."""
        return cls(
            message_id=message.get("MessageId", ""),
            body=message.get("Body", ""),
            receipt_handle=message.get("ReceiptHandle", ""),
            attributes=message.get("Attributes", {}),
        )


@dataclass
class QueueAttributes:
    """Subset of queue attributes reported on init."""

    approximate_number_of_messages: int

    @classmethod
    def from_sqs(cls, attributes: dict[str, Any]) -> "QueueAttributes":
        return cls(
            approximate_number_of_messages=int(
                attributes.get("ApproximateNumberOfMessages", 0)
            ),
        )
