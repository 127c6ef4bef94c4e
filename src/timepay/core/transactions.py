from __future__ import annotations

from contextlib import contextmanager
from typing import ContextManager, Iterator, Protocol


class TransactionManager(Protocol):
    def transaction(self) -> ContextManager[None]:
        raise NotImplementedError


class NullTransactionManager:
    """Used by services wired to in-memory repositories."""

    @contextmanager
    def transaction(self) -> Iterator[None]:
        yield
