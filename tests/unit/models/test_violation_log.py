import pytest

from flash_report.models.core import Timestamp
from flash_report.models.violation import ViolationInterval, ViolationLog


def _ts(text: str) -> Timestamp:
    return Timestamp.parse(text)


def test_close_assigns_sequential_indices() -> None:
    log = ViolationLog('luminance')
    first = log.close(_ts('1'), _ts('2'))
    second = log.close(_ts('3'), _ts('3'))

    assert (first.index, second.index) == (1, 2)
    assert len(log) == 2
    assert second.duration_seconds == 0.0
    assert [interval.metric for interval in log] == ['luminance', 'luminance']


def test_attach_artifact_only_once() -> None:
    log = ViolationLog('red')
    log.close(_ts('1'), _ts('2'))

    updated = log.attach_artifact(1, 'redFrames/red-frame_at_1.png')

    assert updated.artifact_path == 'redFrames/red-frame_at_1.png'
    assert log.intervals[0].artifact_path == 'redFrames/red-frame_at_1.png'
    with pytest.raises(ValueError):
        log.attach_artifact(1, 'other.png')
    with pytest.raises(IndexError):
        log.attach_artifact(2, 'missing.png')


def test_intervals_snapshot_is_immutable() -> None:
    log = ViolationLog('red')
    log.close(_ts('1'), _ts('2'))
    snapshot = log.intervals
    log.close(_ts('4'), _ts('5'))

    assert len(snapshot) == 1
    assert isinstance(snapshot, tuple)


def test_interval_rejects_end_before_start() -> None:
    with pytest.raises(ValueError):
        ViolationInterval(metric='red', start=_ts('5'), end=_ts('4'), index=1)
    with pytest.raises(ValueError):
        ViolationInterval(metric='red', start=_ts('1'), end=_ts('2'), index=0)
