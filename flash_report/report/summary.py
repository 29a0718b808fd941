"""Plain-text report summary for the console."""
from __future__ import annotations

from typing import Iterable, List

from ..models.violation import Report, ViolationInterval


def format_console_summary(report: Report) -> List[str]:
    """Human-readable lines listing every violation per metric."""

    lines: List[str] = []
    lines.append('Photosensitivity Violation Summary')
    lines.append(f'Source: {report.source_video_id}')
    lines.append(f'Threshold: {report.threshold:g}')
    lines.append(
        'Counts: '
        + ' | '.join(f'{metric}={len(intervals)}' for metric, intervals in report.metric_logs.items())
    )
    for metric, intervals in report.metric_logs.items():
        lines.append('')
        lines.append(f'{metric} violations:')
        if not intervals:
            lines.append('  (none detected)')
            continue
        for interval in intervals:
            lines.extend(_format_interval_lines(interval))
    return lines


def _format_interval_lines(interval: ViolationInterval) -> Iterable[str]:
    artifact = interval.artifact_path or 'frame unavailable'
    return [
        f'  {interval.index}. [{interval.start} - {interval.end} | '
        f'duration {interval.duration_seconds:6.3f}s] {artifact}'
    ]
