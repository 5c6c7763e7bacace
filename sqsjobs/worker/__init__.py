"""
Worker module.
Contains the consumer orchestration, long polling and job dispatch.
"""

from sqsjobs.worker.main import SqsConsumer, create_consumer, run

__all__ = ["SqsConsumer", "create_consumer", "run"]
