"""Command-line entry points for flash-report."""
from __future__ import annotations

import argparse
import asyncio
import logging
import math
from pathlib import Path
from typing import Sequence

from ..analyzer.pipeline import ReportWriteError, run_report
from ..config.schema import (
    DEFAULT_REPORT_DIR,
    DEFAULT_RESOLUTION,
    DEFAULT_THRESHOLD,
    DEFAULT_VIDEO_DIR,
    ColumnRef,
    MetricColumns,
    ReportConfig,
    SamplingConfig,
    parse_resolution,
)
from ..report.summary import format_console_summary
from ..stats.parsers import MetricsFormatError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='flash-report',
        description='Report luminance and red flash violations from a per-frame metrics CSV',
    )
    parser.add_argument(
        'metrics_csv',
        type=Path,
        help='Metrics CSV exported for a video; its parent folder names the video file',
    )
    parser.add_argument(
        '--report-dir',
        type=Path,
        default=DEFAULT_REPORT_DIR,
        help='Output root for the report and captured frames (default: %(default)s)',
    )
    parser.add_argument(
        '--video-dir',
        type=Path,
        default=DEFAULT_VIDEO_DIR,
        help='Directory holding source videos (default: %(default)s)',
    )
    parser.add_argument(
        '--video',
        dest='source_video_id',
        default=None,
        help="Video filename inside --video-dir (defaults to the metrics file's parent folder name)",
    )
    parser.add_argument(
        '--threshold',
        type=_finite_float,
        default=DEFAULT_THRESHOLD,
        help='Metric value at or above which a frame violates (default: %(default)s)',
    )
    parser.add_argument(
        '--resolution',
        type=_parse_resolution_arg,
        default=DEFAULT_RESOLUTION,
        help='Captured frame size as WIDTHxHEIGHT (default: %(default)s)',
    )
    parser.add_argument(
        '--luminance-column',
        type=_parse_column_ref,
        default=MetricColumns.luminance,
        help='Header name or zero-based position of the luminance metric (default: %(default)s)',
    )
    parser.add_argument(
        '--red-column',
        type=_parse_column_ref,
        default=MetricColumns.red,
        help='Header name or zero-based position of the red metric (default: %(default)s)',
    )
    parser.add_argument(
        '--timestamp-column',
        type=_parse_column_ref,
        default=MetricColumns.timestamp,
        help='Header name or zero-based position of the timestamp (default: %(default)s)',
    )
    parser.add_argument(
        '--concurrency',
        type=_positive_int,
        default=SamplingConfig.max_concurrency,
        help='Maximum simultaneous FFmpeg captures (default: %(default)s)',
    )
    parser.add_argument(
        '--retries',
        type=int,
        default=SamplingConfig.retries,
        help='Extra attempts per failed frame capture (default: %(default)s)',
    )
    parser.add_argument(
        '--timeout',
        type=_positive_float,
        default=None,
        help='Seconds before a single frame capture is abandoned',
    )
    parser.add_argument(
        '--no-clean',
        dest='clean',
        action='store_false',
        help='Keep existing files in the report directory',
    )
    parser.add_argument(
        '--no-json',
        dest='write_json',
        action='store_false',
        help='Skip the report.json companion file',
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        help='Logging level (DEBUG, INFO, WARNING, ...)',
    )
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))
    logger = logging.getLogger(__name__)

    cfg = ReportConfig(
        metrics_path=args.metrics_csv,
        report_dir=args.report_dir,
        video_dir=args.video_dir,
        source_video_id=args.source_video_id,
        violation_threshold=args.threshold,
        columns=MetricColumns(
            luminance=args.luminance_column,
            red=args.red_column,
            timestamp=args.timestamp_column,
        ),
        sampling=SamplingConfig(
            resolution=args.resolution,
            max_concurrency=args.concurrency,
            retries=max(0, args.retries),
            timeout_s=args.timeout,
        ),
        clean_report_dir=args.clean,
        write_json=args.write_json,
    )
    logger.debug('Report config: %s', cfg)
    logger.info('Video: %s | threshold=%g', cfg.video_path, cfg.violation_threshold)

    try:
        result = asyncio.run(run_report(cfg))
    except (FileNotFoundError, MetricsFormatError) as exc:
        raise SystemExit(f'Input error: {exc}') from exc
    except ReportWriteError as exc:
        _print_summary(format_console_summary(exc.report))
        raise SystemExit(f'Output error: {exc}') from exc
    except (OSError, RuntimeError) as exc:
        raise SystemExit(f'Error: {exc}') from exc

    _print_summary(format_console_summary(result.report))
    if result.sampling.failed:
        logger.warning(
            '%d of %d frame capture(s) failed; those violations are listed without an image',
            result.sampling.failed,
            result.sampling.requested,
        )
    return 0


def main() -> int:
    return run_cli()


def _print_summary(lines: Sequence[str]) -> None:
    print('\n'.join(lines))


def _parse_column_ref(value: str) -> ColumnRef:
    stripped = value.strip()
    if not stripped:
        raise argparse.ArgumentTypeError('Column reference must be non-empty.')
    if stripped.isdigit():
        return int(stripped)
    return stripped


def _parse_resolution_arg(value: str) -> str:
    try:
        parse_resolution(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    return value.strip()


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'.") from exc
    if number < 1:
        raise argparse.ArgumentTypeError('Value must be >= 1.')
    return number


def _finite_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected a number, got '{value}'.") from exc
    if not math.isfinite(number):
        raise argparse.ArgumentTypeError(f"Value must be finite, got '{value}'.")
    return number


def _positive_float(value: str) -> float:
    number = _finite_float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError('Value must be > 0.')
    return number
