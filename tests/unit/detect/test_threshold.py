"""Tests for the threshold interval detectors."""
from __future__ import annotations

import itertools
from typing import Iterator, List, Sequence, Tuple

import pytest

from flash_report.detect.threshold import IntervalDetector, MetricDetector, detect_violations
from flash_report.models.core import LUMINANCE, RED, MetricSample, Timestamp


def _sample(time: str, luminance: float = 0.0, red: float = 0.0) -> MetricSample:
    return MetricSample(timestamp=Timestamp.parse(time), values={LUMINANCE: luminance, RED: red})


def _spans(log) -> List[Tuple[str, str, int]]:
    return [(i.start.text, i.end.text, i.index) for i in log]


def test_single_violation_closes_on_first_low_sample() -> None:
    samples = [
        _sample('00:00:01', luminance=2),
        _sample('00:00:02', luminance=4),
        _sample('00:00:03', luminance=5),
        _sample('00:00:04', luminance=1),
    ]

    logs = detect_violations(samples)

    assert _spans(logs[LUMINANCE]) == [('00:00:02', '00:00:04', 1)]
    assert len(logs[RED]) == 0


def test_open_violation_is_flushed_at_last_sample() -> None:
    samples = [
        _sample('00:00:07', red=1),
        _sample('00:00:08', red=3),
        _sample('00:00:09', red=6),
    ]

    logs = detect_violations(samples)

    assert _spans(logs[RED]) == [('00:00:08', '00:00:09', 1)]


def test_single_violating_last_sample_gives_degenerate_interval() -> None:
    logs = detect_violations([_sample('1', luminance=0), _sample('2', luminance=9)])

    interval = logs[LUMINANCE].intervals[0]
    assert interval.start == interval.end
    assert interval.duration_seconds == 0.0


def test_never_reaching_threshold_gives_empty_log() -> None:
    samples = [_sample(str(t), luminance=2.99, red=0) for t in range(10)]

    logs = detect_violations(samples)

    assert len(logs[LUMINANCE]) == 0
    assert len(logs[RED]) == 0


def test_empty_stream_is_not_an_error() -> None:
    logs = detect_violations([])

    assert {metric: len(log) for metric, log in logs.items()} == {LUMINANCE: 0, RED: 0}


def test_back_to_back_violations_are_indexed_in_order() -> None:
    samples = [
        _sample('1', luminance=4),
        _sample('2', luminance=1),
        _sample('3', luminance=4),
        _sample('4', luminance=1),
    ]

    logs = detect_violations(samples)

    assert _spans(logs[LUMINANCE]) == [('1', '2', 1), ('3', '4', 2)]


def test_value_equal_to_threshold_counts_as_violation() -> None:
    detector = MetricDetector(RED, threshold=3)

    assert detector.observe(Timestamp.parse('1'), 3.0) is None
    assert detector.state.active is True
    closed = detector.observe(Timestamp.parse('2'), 2.999)
    assert closed is not None
    assert closed.start.text == '1'
    assert detector.state.active is False


def test_repeated_readings_do_not_retrigger() -> None:
    detector = MetricDetector(LUMINANCE, threshold=3)
    for t, value in [('1', 3), ('2', 3), ('3', 7), ('4', 3)]:
        assert detector.observe(Timestamp.parse(t), value) is None
    assert detector.state.pending_start == Timestamp.parse('1')
    for t in ('5', '6'):
        detector.observe(Timestamp.parse(t), 0)

    assert _spans(detector.log) == [('1', '5', 1)]


def test_custom_threshold() -> None:
    logs = detect_violations([_sample('1', luminance=1.5), _sample('2', luminance=0.5)], threshold=1.0)

    assert _spans(logs[LUMINANCE]) == [('1', '2', 1)]


def test_metrics_are_tracked_independently() -> None:
    samples = [
        _sample('1', luminance=4, red=0),
        _sample('2', luminance=4, red=5),
        _sample('3', luminance=0, red=5),
        _sample('4', luminance=0, red=0),
    ]

    logs = detect_violations(samples)

    assert _spans(logs[LUMINANCE]) == [('1', '3', 1)]
    assert _spans(logs[RED]) == [('2', '4', 1)]


def _project(samples: Sequence[MetricSample], metric: str) -> List[Tuple[str, str, int]]:
    detector = MetricDetector(metric, threshold=3)
    for sample in samples:
        detector.observe(sample.timestamp, sample.value(metric))
    detector.finish(samples[-1].timestamp if samples else None)
    return _spans(detector.log)


def _patterns() -> Iterator[Tuple[Tuple[int, ...], Tuple[int, ...]]]:
    for lum in itertools.product((0, 5), repeat=4):
        for red in itertools.product((1, 3), repeat=4):
            yield lum, red


@pytest.mark.parametrize('lum, red', list(_patterns()))
def test_combined_detection_matches_isolated_runs(lum: Tuple[int, ...], red: Tuple[int, ...]) -> None:
    samples = [_sample(str(t), luminance=l, red=r) for t, (l, r) in enumerate(zip(lum, red))]

    logs = detect_violations(samples)

    assert _spans(logs[LUMINANCE]) == _project(samples, LUMINANCE)
    assert _spans(logs[RED]) == _project(samples, RED)
    for log in logs.values():
        intervals = log.intervals
        assert all(i.start <= i.end for i in intervals)
        assert [i.index for i in intervals] == list(range(1, len(intervals) + 1))
        for previous, current in zip(intervals, intervals[1:]):
            assert previous.end <= current.start


def test_aborted_stream_keeps_flushed_intervals() -> None:
    def _stream() -> Iterator[MetricSample]:
        yield _sample('1', luminance=1)
        yield _sample('2', luminance=6, red=6)
        yield _sample('3', luminance=6, red=1)
        raise OSError('disk went away')

    detector = IntervalDetector()
    with pytest.raises(OSError):
        detector.consume(_stream())

    assert _spans(detector.logs[LUMINANCE]) == [('2', '3', 1)]
    assert _spans(detector.logs[RED]) == [('2', '3', 1)]
    assert detector.samples_seen == 3


def test_finish_without_samples_is_noop() -> None:
    detector = IntervalDetector()
    detector.finish()

    assert all(len(log) == 0 for log in detector.logs.values())
