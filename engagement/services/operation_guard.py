"""
In-flight operation tokens.

Under the cooperative scheduler there is no mutex; instead each logical action
(e.g. "like", "comment:like:<id>") holds a token while its store calls are pending.
A second invocation of the same action while the token is held is dropped.
Different actions never block each other.
"""

from contextlib import contextmanager
from typing import Iterator, Optional, Set


class OperationToken:
    """Proof that an action is in flight. Release exactly once."""

    def __init__(self, guard: "OperationGuard", key: str):
        self._guard = guard
        self.key = key
        self.released = False

    def release(self) -> None:
        if not self.released:
            self.released = True
            self._guard._pending.discard(self.key)


class OperationGuard:
    def __init__(self) -> None:
        self._pending: Set[str] = set()

    def acquire(self, key: str) -> Optional[OperationToken]:
        """Return a token, or None if the same action is already in flight."""
        if key in self._pending:
            return None
        self._pending.add(key)
        return OperationToken(self, key)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    @property
    def pending(self) -> Set[str]:
        return set(self._pending)

    @contextmanager
    def hold(self, key: str) -> Iterator[Optional[OperationToken]]:
        """
        Acquire for the duration of the block; released on exit, including on error.
        Yields None when the action is a duplicate and should be dropped.
        """
        token = self.acquire(key)
        try:
            yield token
        finally:
            if token is not None:
                token.release()
