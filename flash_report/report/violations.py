"""JSON companion output for violation reports."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict

from ..models.violation import Report, ViolationInterval


def write_report_json(path: Path, report: Report) -> None:
    """Emit the full report payload, including per-metric counts."""

    payload = {
        'source': report.source_video_id,
        'generated_at': report.generated_at.isoformat(),
        'threshold': report.threshold,
        'counts': {metric: len(intervals) for metric, intervals in report.metric_logs.items()},
        'violations': {
            metric: [_interval_to_dict(interval) for interval in intervals]
            for metric, intervals in report.metric_logs.items()
        },
    }
    _write_json(path, payload)


def _interval_to_dict(interval: ViolationInterval) -> Dict[str, object]:
    return {
        'index': interval.index,
        'start': interval.start.text,
        'end': interval.end.text,
        'start_seconds': interval.start.seconds,
        'end_seconds': interval.end.seconds,
        'duration': interval.duration_seconds,
        'artifact': interval.artifact_path,
    }


def _write_json(path: Path, payload: Dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding='utf-8')
