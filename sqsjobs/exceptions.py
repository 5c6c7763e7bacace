"""
Exception classes for the SQS job consumer.

Only configuration, initialization and explicit caller operations
(create_job, purge) raise to the caller. Errors during consumption are
logged and absorbed.
"""


class SqsJobsError(Exception):
    """Base exception for all consumer errors"""
    pass


class ConfigurationError(SqsJobsError, ValueError):
    """Invalid constructor options (queue URL, concurrency limit, logger)"""
    pass


class InstanceDisposedError(SqsJobsError):
    """Operation attempted on a disposed consumer"""
    pass


class PurgeRefusedError(SqsJobsError):
    """Purge requested on a queue that is not marked as a test queue"""
    pass
