"""
Disposal state for the consumer.

Long polls can still be outstanding when the consumer is disposed. Every
entry point and every continuation checks the guard so a late response
turns into a silent no-op instead of new work.
"""


class LifecycleGuard:
    """One-way active -> disposed flag."""

    def __init__(self) -> None:
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def active(self) -> bool:
        return not self._disposed

    def dispose(self) -> bool:
        """
        Mark as disposed.

        Returns:
            True on the first call, False if already disposed.
        """
        if self._disposed:
            return False
        self._disposed = True
        return True
