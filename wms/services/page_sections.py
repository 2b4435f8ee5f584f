# FILE: wms/services/page_sections.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Dict, Mapping

from wms.schemas.common import ActionResult, ErrorKind

logger = logging.getLogger(__name__)


async def fetch_sections(
        sections: Mapping[str, Awaitable[ActionResult]]
) -> Dict[str, ActionResult]:
    """
    Load independent page sections concurrently.

    Each section keeps its own result. A section that raises becomes a
    DATA_ACCESS failure for that section only; the others are untouched.
    """
    names = list(sections.keys())
    results = await asyncio.gather(*(sections[n] for n in names),
                                   return_exceptions=True)

    out: Dict[str, ActionResult] = {}
    for name, res in zip(names, results):
        if isinstance(res, BaseException):
            logger.error("Section %s failed", name, exc_info=res)
            out[name] = ActionResult.fail(ErrorKind.DATA_ACCESS,
                                          f"Failed to load {name}")
        else:
            out[name] = res
    return out
