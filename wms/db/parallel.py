# wms/db/parallel.py
from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Mapping

from sqlalchemy.orm import Session, sessionmaker

Read = Callable[[Session], Any]


def _run_read(session_factory: sessionmaker, read: Read) -> Any:
    db = session_factory()
    try:
        return read(db)
    finally:
        db.close()


async def gather_reads(
    session_factory: sessionmaker,
    reads: Mapping[str, Read],
) -> Dict[str, Any]:
    """
    Run independent read-only queries concurrently.

    Each read gets its own short-lived session on a worker thread (the ORM
    is sync). Results come back keyed like `reads`. The first failure is
    re-raised after every read has settled; there is no shared transaction.
    """
    names = list(reads.keys())
    results = await asyncio.gather(
        *(asyncio.to_thread(_run_read, session_factory, reads[n]) for n in names),
        return_exceptions=True,
    )

    for r in results:
        if isinstance(r, BaseException):
            raise r

    return dict(zip(names, results))


async def run_read(session_factory: sessionmaker, read: Read) -> Any:
    """Single sync read on a worker thread with its own session."""
    return await asyncio.to_thread(_run_read, session_factory, read)
