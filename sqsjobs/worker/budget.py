"""
Concurrency budget.

SQS returns at most 10 messages per receive call, so a concurrency limit
above 10 is served by running several long polls side by side.
"""

from dataclasses import dataclass

from sqsjobs.constants import SQS_MAX_BATCH_SIZE
from sqsjobs.exceptions import ConfigurationError


@dataclass(frozen=True)
class ConcurrencyBudget:
    """
    Translates a concurrency limit into long polls and batch size.

    Limits up to 10 use a single long poll receiving `limit` messages.
    Above 10 the limit must be a multiple of 10 and each long poll
    receives a full batch of 10.
    """

    limit: int

    def __post_init__(self) -> None:
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise ConfigurationError(
                '"concurrent_ops_limit" option required and must be an integer.'
            )
        if self.limit < 1:
            raise ConfigurationError(
                f'"concurrent_ops_limit" must be positive, got {self.limit}'
            )
        if self.limit > SQS_MAX_BATCH_SIZE and self.limit % SQS_MAX_BATCH_SIZE != 0:
            raise ConfigurationError(
                f"You can only define multiples of {SQS_MAX_BATCH_SIZE} beyond "
                f"{SQS_MAX_BATCH_SIZE} concurrent operations limit, got {self.limit}"
            )

    @property
    def required_polls(self) -> int:
        """Number of long polls to keep in flight."""
        if self.limit <= SQS_MAX_BATCH_SIZE:
            return 1
        return self.limit // SQS_MAX_BATCH_SIZE

    @property
    def batch_size(self) -> int:
        """MaxNumberOfMessages for each receive call."""
        return min(SQS_MAX_BATCH_SIZE, self.limit)
