"""
Per-edition locks using PostgreSQL advisory locks.
"""
from contextlib import ExitStack, contextmanager
from typing import Iterable

from django.db import connection, transaction


def edition_lock_key(artwork_id: str, size: str) -> str:
    return f"edition:{artwork_id}:{size}"


@contextmanager
def edition_lock(artwork_id: str, size: str):
    """
    Acquire a transaction-scoped advisory lock on one (artwork, size) edition.

    Must be used inside ``transaction.atomic``; the lock is released when
    the transaction ends. Other database vendors get no advisory lock and rely
    on the row lock and conditional update in EditionRepository.

    Usage:
        with transaction.atomic(), edition_lock(artwork_id, size):
            # read, check and increment editions_sold
            pass
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("edition_lock requires an open transaction")

    if connection.vendor == "postgresql":
        # hashtext keeps the key stable across processes and fits a bigint
        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT pg_advisory_xact_lock(hashtext(%s)::bigint)",
                [edition_lock_key(artwork_id, size)],
            )
    yield


@contextmanager
def edition_locks(keys: Iterable[tuple[str, str]]):
    """Lock several editions in a stable order to avoid deadlocks."""
    with ExitStack() as stack:
        for artwork_id, size in sorted(set(keys)):
            stack.enter_context(edition_lock(artwork_id, size))
        yield
