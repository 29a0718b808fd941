"""Threshold state machines that turn metric readings into violation intervals."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Sequence

from ..config.schema import DEFAULT_THRESHOLD
from ..models.core import TRACKED_METRICS, DetectorState, MetricSample, Timestamp
from ..models.violation import ViolationInterval, ViolationLog

logger = logging.getLogger(__name__)


class MetricDetector:
    """Tracks one metric against a fixed threshold.

    A value at or above ``threshold`` opens a violation; the first value below
    it closes the violation at that sample's timestamp. Repeated readings on
    the same side of the threshold never emit anything.
    """

    def __init__(
        self,
        metric: str,
        *,
        threshold: float = DEFAULT_THRESHOLD,
        log: Optional[ViolationLog] = None,
    ) -> None:
        self.metric = metric
        self.threshold = threshold
        self.log = log if log is not None else ViolationLog(metric)
        self.state = DetectorState.idle()

    def observe(self, timestamp: Timestamp, value: float) -> Optional[ViolationInterval]:
        violating = value >= self.threshold
        if violating and not self.state.active:
            self.state = DetectorState.started(timestamp)
            logger.debug('%s violation opened at %s (value=%s)', self.metric, timestamp, value)
            return None
        if not violating and self.state.active:
            return self._close(timestamp)
        return None

    def finish(self, last_timestamp: Optional[Timestamp]) -> Optional[ViolationInterval]:
        """Close an interval still open when the stream ends."""

        if not self.state.active or last_timestamp is None:
            return None
        logger.debug('%s violation still open at end of stream; closing at %s', self.metric, last_timestamp)
        return self._close(last_timestamp)

    def _close(self, timestamp: Timestamp) -> ViolationInterval:
        assert self.state.pending_start is not None
        interval = self.log.close(self.state.pending_start, timestamp)
        self.state = DetectorState.idle()
        logger.debug(
            '%s violation #%d closed: %s -> %s',
            self.metric,
            interval.index,
            interval.start,
            interval.end,
        )
        return interval


class IntervalDetector:
    """Runs one independent ``MetricDetector`` per tracked metric."""

    def __init__(
        self,
        metrics: Sequence[str] = TRACKED_METRICS,
        *,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self.threshold = threshold
        self.detectors: Dict[str, MetricDetector] = {
            metric: MetricDetector(metric, threshold=threshold) for metric in metrics
        }
        self.last_timestamp: Optional[Timestamp] = None
        self.samples_seen = 0

    @property
    def logs(self) -> Dict[str, ViolationLog]:
        return {metric: detector.log for metric, detector in self.detectors.items()}

    def observe(self, sample: MetricSample) -> None:
        for metric, detector in self.detectors.items():
            detector.observe(sample.timestamp, sample.value(metric))
        self.last_timestamp = sample.timestamp
        self.samples_seen += 1

    def finish(self) -> None:
        for detector in self.detectors.values():
            detector.finish(self.last_timestamp)

    def consume(self, samples: Iterable[MetricSample]) -> Dict[str, ViolationLog]:
        """Feed every sample, then flush open intervals.

        The flush also runs when reading the stream fails part way, so
        intervals seen before the failure are kept on ``logs``.
        """

        try:
            for sample in samples:
                self.observe(sample)
        finally:
            self.finish()
        logger.info(
            'Processed %d sample(s) | %s',
            self.samples_seen,
            ' '.join(f'{metric}={len(log)}' for metric, log in self.logs.items()),
        )
        return self.logs


def detect_violations(
    samples: Iterable[MetricSample],
    *,
    metrics: Sequence[str] = TRACKED_METRICS,
    threshold: float = DEFAULT_THRESHOLD,
) -> Dict[str, ViolationLog]:
    """Run detection over a complete sample stream."""

    return IntervalDetector(metrics, threshold=threshold).consume(samples)
