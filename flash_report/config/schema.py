"""Configuration dataclasses for flash-report."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

ColumnRef = Union[str, int]

DEFAULT_REPORT_DIR = Path('report')
DEFAULT_VIDEO_DIR = Path('../../tmp/video-tests')
DEFAULT_THRESHOLD = 3.0
DEFAULT_RESOLUTION = '1920x1080'

_RESOLUTION_RE = re.compile(r'^(?P<w>\d+)x(?P<h>\d+)$')


@dataclass(frozen=True)
class MetricColumns:
    """Where each tracked value lives in the metrics CSV.

    Strings select a column by header name, ints by zero-based position.
    The positional defaults match the luminance/red transition columns of
    the analyser export.
    """

    luminance: ColumnRef = 12
    red: ColumnRef = 13
    timestamp: ColumnRef = 'TimeStamp'


@dataclass(frozen=True)
class SamplingConfig:
    """Controls how still frames are captured for each violation."""

    resolution: str = DEFAULT_RESOLUTION
    max_concurrency: int = 4
    retries: int = 0
    retry_delay_s: float = 0.5
    timeout_s: Optional[float] = None

    def __post_init__(self) -> None:
        parse_resolution(self.resolution)
        if self.max_concurrency < 1:
            raise ValueError('max_concurrency must be >= 1')
        if self.retries < 0:
            raise ValueError('retries must be >= 0')

    @property
    def size(self) -> Tuple[int, int]:
        return parse_resolution(self.resolution)


@dataclass(frozen=True)
class ReportConfig:
    """High-level knobs for a report run."""

    metrics_path: Path
    report_dir: Path = DEFAULT_REPORT_DIR
    video_dir: Path = DEFAULT_VIDEO_DIR
    source_video_id: Optional[str] = None
    violation_threshold: float = DEFAULT_THRESHOLD
    columns: MetricColumns = field(default_factory=MetricColumns)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    clean_report_dir: bool = True
    write_json: bool = True

    @property
    def video_id(self) -> str:
        # Metrics exports live in a folder named after the video they describe.
        return self.source_video_id or self.metrics_path.resolve().parent.name

    @property
    def video_path(self) -> Path:
        return self.video_dir / self.video_id


def parse_resolution(value: str) -> Tuple[int, int]:
    match = _RESOLUTION_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid resolution '{value}'. Use WIDTHxHEIGHT, e.g. 1920x1080.")
    width, height = int(match.group('w')), int(match.group('h'))
    if width <= 0 or height <= 0:
        raise ValueError(f"Resolution must be positive, got '{value}'.")
    return width, height
