"""Report pipeline that runs detection, frame sampling and rendering in order."""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from jinja2 import TemplateError

from ..config.schema import ReportConfig
from ..detect.threshold import IntervalDetector
from ..ffmpeg.commands import capture_frame, which_or_die
from ..fs.layout import prepare_report_dir, resolve_video_path
from ..models.core import TRACKED_METRICS
from ..models.violation import Report, ViolationLog
from ..report.assembler import build_report
from ..report.render import write_report
from ..report.violations import write_report_json
from ..sampling.frames import FrameSampler, SamplingSummary
from ..sampling.retry import CaptureFn
from ..stats.parsers import iter_metric_samples

logger = logging.getLogger(__name__)

REPORT_FILENAME = 'report.html'
REPORT_JSON_FILENAME = 'report.json'


class ReportWriteError(RuntimeError):
    """Rendering or writing the report failed after detection succeeded."""

    def __init__(self, message: str, report: Report) -> None:
        super().__init__(message)
        self.report = report


@dataclass
class RunResult:
    report: Report
    sampling: SamplingSummary
    html_path: Path
    json_path: Optional[Path] = None


async def run_report(config: ReportConfig, *, capture: Optional[CaptureFn] = None) -> RunResult:
    """Produce the violation report described by ``config``.

    ``capture`` defaults to an FFmpeg screenshot of the configured video;
    tests pass a fake.
    """

    if not config.metrics_path.is_file():
        raise FileNotFoundError(f"Metrics file not found: {config.metrics_path}")
    if capture is None:
        capture = build_ffmpeg_capture(config)

    if config.clean_report_dir:
        prepare_report_dir(config.report_dir)

    logs = detect_from_file(config)
    log_violations(logs)

    sampler = FrameSampler(
        capture,
        config.report_dir,
        max_concurrency=config.sampling.max_concurrency,
        retries=config.sampling.retries,
        retry_delay_s=config.sampling.retry_delay_s,
    )
    sampling = await sampler.sample_all(logs)

    report = build_report(
        logs,
        source_video_id=config.video_id,
        threshold=config.violation_threshold,
    )

    html_path = config.report_dir / REPORT_FILENAME
    json_path = config.report_dir / REPORT_JSON_FILENAME if config.write_json else None
    try:
        write_report(html_path, report)
        logger.info('Wrote report to %s', html_path)
        if json_path is not None:
            write_report_json(json_path, report)
            logger.info('Wrote report JSON to %s', json_path)
    except (OSError, TemplateError) as exc:
        raise ReportWriteError(f'Could not write report to {config.report_dir}: {exc}', report) from exc

    return RunResult(report=report, sampling=sampling, html_path=html_path, json_path=json_path)


def detect_from_file(config: ReportConfig) -> Dict[str, ViolationLog]:
    """Read the metrics file and run every metric detector over it."""

    detector = IntervalDetector(TRACKED_METRICS, threshold=config.violation_threshold)
    logger.info('Reading metrics from %s', config.metrics_path)
    try:
        detector.consume(iter_metric_samples(config.metrics_path, config.columns))
    except Exception:
        logger.error(
            'Metrics stream aborted after %d sample(s); intervals found so far:',
            detector.samples_seen,
        )
        log_violations(detector.logs)
        raise
    logger.info('Metrics file successfully processed')
    return detector.logs


def log_violations(logs: Mapping[str, ViolationLog]) -> None:
    for metric, log in logs.items():
        logger.info('%s violations: %d', metric, len(log))
        for interval in log:
            logger.info('  #%d %s -> %s', interval.index, interval.start, interval.end)


def build_ffmpeg_capture(config: ReportConfig) -> CaptureFn:
    ffmpeg_exe = which_or_die('ffmpeg')
    video_path = resolve_video_path(config.video_dir, config.video_id)
    return functools.partial(
        capture_frame,
        ffmpeg_exe,
        video_path,
        resolution=config.sampling.size,
        timeout_s=config.sampling.timeout_s,
    )
