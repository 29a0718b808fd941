"""Bounded retry wrapper for frame captures."""
from __future__ import annotations

import asyncio
import logging
import random
from pathlib import Path
from typing import Awaitable, Callable

from ..models.core import Timestamp

logger = logging.getLogger(__name__)

CaptureFn = Callable[[Timestamp, Path, str], Awaitable[Path]]

_MAX_DELAY_S = 5.0


def with_retries(capture: CaptureFn, *, attempts: int, delay_s: float = 0.5) -> CaptureFn:
    """Retry ``capture`` up to ``attempts`` extra times with exponential backoff."""

    if attempts <= 0:
        return capture

    async def _capture(timestamp: Timestamp, output_dir: Path, filename: str) -> Path:
        total = attempts + 1
        for attempt in range(1, total):
            try:
                return await capture(timestamp, output_dir, filename)
            except Exception as exc:
                delay = min(delay_s * (2 ** (attempt - 1)), _MAX_DELAY_S)
                delay += random.uniform(0, delay * 0.1)
                logger.warning(
                    "Capture of %s failed (attempt %d/%d), retrying in %.2fs: %s",
                    filename, attempt, total, delay, exc,
                )
                await asyncio.sleep(delay)
        return await capture(timestamp, output_dir, filename)

    return _capture
