"""
AWS SQS backend built on boto3.

boto3 is blocking, so every call runs on a dedicated thread pool sized for
the number of long polls and deletes the consumer can have outstanding.
"""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

import boto3
from botocore.config import Config

from sqsjobs.constants import DEFAULT_SQS_API_VERSION, DEFAULT_SQS_REGION
from sqsjobs.types.job import QueueAttributes, RawMessage

logger = logging.getLogger(__name__)


class SqsBackend:
    """
    QueueBackend implementation for AWS SQS.

    Transport concerns (request signing, retries on throttling) are left to
    botocore.
    """

    def __init__(
        self,
        client: Any | None = None,
        region: str = DEFAULT_SQS_REGION,
        api_version: str = DEFAULT_SQS_API_VERSION,
        endpoint_url: str | None = None,
        max_workers: int = 10,
    ):
        """
        Initialize the backend.

        Args:
            client: An existing boto3 SQS client. Created if not provided.
            region: AWS region for a newly created client.
            api_version: SQS API version for a newly created client.
            endpoint_url: Override endpoint, e.g. for a local emulator.
            max_workers: Size of the thread pool running boto3 calls.
        """
        self._client = client or boto3.client(
            "sqs",
            region_name=region,
            api_version=api_version,
            endpoint_url=endpoint_url,
            config=Config(max_pool_connections=max_workers),
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="sqsjobs",
        )

    async def _call(self, method: Callable[..., Any], **params: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor,
            functools.partial(method, **params),
        )

    async def get_attributes(self, queue_url: str) -> QueueAttributes:
        response = await self._call(
            self._client.get_queue_attributes,
            QueueUrl=queue_url,
            AttributeNames=["ApproximateNumberOfMessages"],
        )
        return QueueAttributes.from_sqs(response.get("Attributes", {}))

    async def receive(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: int,
    ) -> list[RawMessage]:
        response = await self._call(
            self._client.receive_message,
            QueueUrl=queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=wait_seconds,
        )
        # "Messages" is absent when the long poll times out empty
        return [RawMessage.from_sqs(m) for m in response.get("Messages") or []]

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        await self._call(
            self._client.delete_message,
            QueueUrl=queue_url,
            ReceiptHandle=receipt_handle,
        )

    async def send(self, queue_url: str, body: str) -> str:
        response = await self._call(
            self._client.send_message,
            QueueUrl=queue_url,
            MessageBody=body,
            DelaySeconds=0,
        )
        return response.get("MessageId", "")

    async def purge(self, queue_url: str) -> None:
        await self._call(self._client.purge_queue, QueueUrl=queue_url)

    async def close(self) -> None:
        """Stop accepting new calls; outstanding long polls finish on their own."""
        self._executor.shutdown(wait=False)
        logger.debug("SQS backend closed")
