"""Merge finalized violation logs into a single immutable report."""
from __future__ import annotations

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from ..models.core import TRACKED_METRICS
from ..models.violation import Report, ViolationInterval, ViolationLog


def build_report(
    logs: Mapping[str, ViolationLog],
    *,
    source_video_id: str,
    threshold: float,
    generated_at: Optional[datetime] = None,
) -> Report:
    """Snapshot every log into a ``Report``.

    Tracked metrics come first in their usual order, followed by any other
    metric names sorted alphabetically.
    """

    ordered: Dict[str, Tuple[ViolationInterval, ...]] = {}
    for metric in _metric_order(logs):
        ordered[metric] = logs[metric].intervals
    return Report(
        source_video_id=source_video_id,
        generated_at=generated_at or datetime.now(timezone.utc),
        threshold=threshold,
        metric_logs=MappingProxyType(ordered),
    )


def _metric_order(logs: Mapping[str, ViolationLog]) -> List[str]:
    known = [metric for metric in TRACKED_METRICS if metric in logs]
    extra = sorted(metric for metric in logs if metric not in TRACKED_METRICS)
    return known + extra
