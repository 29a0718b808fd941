import asyncio
from pathlib import Path

import pytest

from flash_report.models.core import Timestamp
from flash_report.sampling.retry import with_retries


def test_zero_attempts_returns_capture_unchanged() -> None:
    async def capture(timestamp, output_dir, filename):
        return output_dir / filename

    assert with_retries(capture, attempts=0) is capture


def test_retries_give_up_after_bound(tmp_path: Path) -> None:
    calls = []

    async def capture(timestamp, output_dir, filename):
        calls.append(filename)
        raise RuntimeError('ffmpeg exploded')

    wrapped = with_retries(capture, attempts=2, delay_s=0)

    with pytest.raises(RuntimeError, match='exploded'):
        asyncio.run(wrapped(Timestamp.parse('1'), tmp_path, 'a.png'))
    assert len(calls) == 3
