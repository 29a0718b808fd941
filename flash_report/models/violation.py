"""Data structures describing detected violation intervals."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple

from .core import Timestamp


@dataclass(frozen=True)
class ViolationInterval:
    """A span during which one metric stayed at or above the threshold."""

    metric: str
    start: Timestamp
    end: Timestamp
    index: int
    artifact_path: Optional[str] = None

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(
                f'Interval end {self.end} precedes start {self.start} ({self.metric} #{self.index})'
            )
        if self.index < 1:
            raise ValueError(f'Interval index must be >= 1, got {self.index}')

    @property
    def duration_seconds(self) -> float:
        return self.end.seconds - self.start.seconds


class ViolationLog:
    """Ordered, append-only list of intervals for a single metric.

    Entries are only ever replaced once, to attach the captured frame.
    """

    def __init__(self, metric: str) -> None:
        self.metric = metric
        self._intervals: List[ViolationInterval] = []

    def close(self, start: Timestamp, end: Timestamp) -> ViolationInterval:
        interval = ViolationInterval(
            metric=self.metric,
            start=start,
            end=end,
            index=len(self._intervals) + 1,
        )
        self._intervals.append(interval)
        return interval

    def attach_artifact(self, index: int, artifact_path: str) -> ViolationInterval:
        position = index - 1
        if position < 0 or position >= len(self._intervals):
            raise IndexError(f'No {self.metric} interval with index {index}')
        current = self._intervals[position]
        if current.artifact_path is not None:
            raise ValueError(f'Artifact already attached to {self.metric} interval #{index}')
        updated = replace(current, artifact_path=artifact_path)
        self._intervals[position] = updated
        return updated

    @property
    def intervals(self) -> Tuple[ViolationInterval, ...]:
        return tuple(self._intervals)

    def __iter__(self) -> Iterator[ViolationInterval]:
        return iter(tuple(self._intervals))

    def __len__(self) -> int:
        return len(self._intervals)

    def __repr__(self) -> str:
        return f'ViolationLog(metric={self.metric!r}, intervals={self._intervals!r})'


@dataclass(frozen=True)
class Report:
    """Top-level output handed to the renderer."""

    source_video_id: str
    generated_at: datetime
    threshold: float
    metric_logs: Mapping[str, Tuple[ViolationInterval, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def total_violations(self) -> int:
        return sum(len(intervals) for intervals in self.metric_logs.values())

    @property
    def missing_artifacts(self) -> int:
        return sum(
            1
            for intervals in self.metric_logs.values()
            for interval in intervals
            if interval.artifact_path is None
        )
