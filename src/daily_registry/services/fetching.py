from __future__ import annotations

import logging
from typing import Awaitable, TypeVar

from daily_registry.exceptions import LoadError, StoreError

log = logging.getLogger(__name__)

T = TypeVar("T")


async def fetch_or_empty(source: str, call: Awaitable[list[T]]) -> tuple[list[T], LoadError | None]:
    """Await one read, degrading a failure to an empty list plus a notice.

    Meant to be gathered with sibling reads so one failing source never
    aborts the others.
    """

    try:
        return list(await call), None
    except StoreError as exc:
        log.warning("Loading %s failed, continuing without it: %s", source, exc)
        error = LoadError(source)
        error.__cause__ = exc
        return [], error
