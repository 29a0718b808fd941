"""Shared data structures used across the pipeline."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

LUMINANCE = 'luminance'
RED = 'red'
TRACKED_METRICS = (LUMINANCE, RED)

_FILENAME_UNSAFE_RE = re.compile(r'[:/\\\s]')


@dataclass(frozen=True, order=True)
class Timestamp:
    """Position within the source video.

    Ordering and equality use the parsed seconds only. The text exactly as it
    appeared in the metrics file is kept so reports and filenames read the
    same way the input did.
    """

    seconds: float
    text: str = field(compare=False)

    @classmethod
    def parse(cls, raw: Union[str, float, int]) -> 'Timestamp':
        """Accept plain seconds or ``[HH:]MM:SS[.fff]``."""

        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return cls(_validate_seconds(float(raw), raw), _format_seconds(float(raw)))
        text = str(raw).strip()
        if not text:
            raise ValueError('Timestamp must be non-empty.')
        return cls(_validate_seconds(_parse_seconds(text), raw), text)

    @property
    def is_clock(self) -> bool:
        return ':' in self.text

    def as_filename(self) -> str:
        return _FILENAME_UNSAFE_RE.sub('-', self.text)

    def for_ffmpeg(self) -> str:
        if self.is_clock:
            return self.text
        return f'{self.seconds:.3f}'

    def __str__(self) -> str:
        return self.text


def _parse_seconds(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        pass

    parts = text.split(':')
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid timestamp '{text}'. Use seconds or HH:MM:SS.mmm.")
    try:
        seconds = float(parts[-1])
        minutes = int(parts[-2])
        hours = int(parts[-3]) if len(parts) == 3 else 0
    except ValueError as exc:
        raise ValueError(f"Invalid numeric component in timestamp '{text}'.") from exc
    if minutes < 0 or hours < 0:
        raise ValueError(f"Invalid timestamp '{text}'.")
    return hours * 3600 + minutes * 60 + seconds


def _validate_seconds(value: float, raw: object) -> float:
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValueError(f"Invalid timestamp '{raw}'.")
    return value


def _format_seconds(value: float) -> str:
    return f'{value:g}'


@dataclass(frozen=True)
class MetricSample:
    """Metric readings for a single analysed frame."""

    timestamp: Timestamp
    values: Dict[str, float]

    def value(self, metric: str) -> float:
        return self.values[metric]


@dataclass(frozen=True)
class DetectorState:
    """Per-metric state machine position.

    ``active`` is true exactly when ``pending_start`` holds the timestamp the
    current violation began at.
    """

    active: bool = False
    pending_start: Optional[Timestamp] = None

    def __post_init__(self) -> None:
        if self.active != (self.pending_start is not None):
            raise ValueError('DetectorState.active must match pending_start being set')

    @classmethod
    def idle(cls) -> 'DetectorState':
        return cls()

    @classmethod
    def started(cls, timestamp: Timestamp) -> 'DetectorState':
        return cls(active=True, pending_start=timestamp)
