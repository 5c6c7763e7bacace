"""
Job handler type and built-in handlers.

A handler receives the decoded JSON body of one message. Returning (or
awaiting) normally means the job is done and the message is deleted;
raising leaves the message on the queue for redelivery. Handlers must be
idempotent since SQS delivers at least once.
"""

import importlib
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

# A plain function or a coroutine function taking the job data
JobHandler = Callable[[Any], Awaitable[Any] | Any]


def load_handler(path: str) -> JobHandler:
    """
    Import a handler from a "package.module:function" path.

    Args:
        path: Import path of the handler.

    Returns:
        The handler callable.

    Raises:
        ValueError: If the path is malformed or does not name a callable.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Handler path must look like 'module:function', got {path!r}")

    module = importlib.import_module(module_name)
    handler = getattr(module, attr, None)
    if not callable(handler):
        raise ValueError(f"{path!r} is not a callable handler")
    return handler


async def log_job(data: Any) -> None:
    """
    Default handler: log the job payload and acknowledge it.
    """
    logger.info("Job received", extra={"data": data})
