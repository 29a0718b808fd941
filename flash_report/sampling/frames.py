"""Capture one representative still per violation interval."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Set

from ..fs.layout import ensure_dir
from ..models.core import LUMINANCE, RED
from ..models.violation import ViolationInterval, ViolationLog
from .retry import CaptureFn, with_retries

logger = logging.getLogger(__name__)

METRIC_FRAME_DIRS: Dict[str, str] = {
    LUMINANCE: 'luminanceFrames',
    RED: 'redFrames',
}


@dataclass(frozen=True)
class SamplingSummary:
    requested: int
    captured: int
    failed: int


@dataclass(frozen=True)
class _Job:
    log: ViolationLog
    interval: ViolationInterval
    output_dir: Path
    filename: str


def frame_dir_name(metric: str) -> str:
    return METRIC_FRAME_DIRS.get(metric, f'{metric}Frames')


def artifact_filename(interval: ViolationInterval, *, disambiguate: bool = False) -> str:
    """Deterministic image name for an interval's representative frame."""

    stem = f'{interval.metric}-frame_at_{interval.start.as_filename()}'
    if disambiguate:
        stem = f'{stem}_{interval.index}'
    return f'{stem}.png'


class FrameSampler:
    """Scatter one capture request per interval, then gather every outcome.

    Failed captures are logged and leave ``artifact_path`` unset; the
    interval itself stays in its log.
    """

    def __init__(
        self,
        capture: CaptureFn,
        report_dir: Path,
        *,
        max_concurrency: int = 4,
        retries: int = 0,
        retry_delay_s: float = 0.5,
    ) -> None:
        self.capture = with_retries(capture, attempts=retries, delay_s=retry_delay_s)
        self.report_dir = report_dir
        self.max_concurrency = max_concurrency

    async def sample_all(self, logs: Mapping[str, ViolationLog]) -> SamplingSummary:
        jobs = self._plan(logs)
        if not jobs:
            logger.info('No violations to sample')
            return SamplingSummary(requested=0, captured=0, failed=0)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _run(job: _Job) -> Path:
            async with semaphore:
                return await self.capture(job.interval.start, job.output_dir, job.filename)

        logger.info('Capturing %d frame(s) (concurrency=%d)', len(jobs), self.max_concurrency)
        outcomes = await asyncio.gather(*(_run(job) for job in jobs), return_exceptions=True)

        captured = 0
        for job, outcome in zip(jobs, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(
                    'Error capturing %s violation #%d at %s: %s',
                    job.interval.metric,
                    job.interval.index,
                    job.interval.start,
                    outcome,
                )
                continue
            job.log.attach_artifact(job.interval.index, self._relative(outcome))
            captured += 1

        summary = SamplingSummary(requested=len(jobs), captured=captured, failed=len(jobs) - captured)
        logger.info(
            'Frame sampling finished | captured=%d failed=%d',
            summary.captured,
            summary.failed,
        )
        return summary

    def _plan(self, logs: Mapping[str, ViolationLog]) -> List[_Job]:
        jobs: List[_Job] = []
        for metric, log in logs.items():
            output_dir = ensure_dir(self.report_dir / frame_dir_name(metric))
            seen: Set[str] = set()
            for interval in log:
                filename = artifact_filename(interval)
                if filename in seen:
                    filename = artifact_filename(interval, disambiguate=True)
                seen.add(filename)
                jobs.append(_Job(log=log, interval=interval, output_dir=output_dir, filename=filename))
        return jobs

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.report_dir).as_posix()
        except ValueError:
            return path.as_posix()
