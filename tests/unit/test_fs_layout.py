import logging
from pathlib import Path

from flash_report.fs import layout
from flash_report.fs.layout import clean_directory, ensure_dir, prepare_report_dir, resolve_video_path


def test_clean_directory_creates_and_empties(tmp_path: Path) -> None:
    target = tmp_path / 'report'
    (target / 'luminanceFrames').mkdir(parents=True)
    (target / 'luminanceFrames' / 'old.png').write_bytes(b'x')
    (target / 'report.html').write_text('old')

    clean_directory(target)

    assert target.is_dir()
    assert list(target.iterdir()) == []


def test_ensure_dir_is_idempotent(tmp_path: Path) -> None:
    target = tmp_path / 'a' / 'b'

    assert ensure_dir(target) == target
    assert ensure_dir(target) == target
    assert target.is_dir()


def test_prepare_report_dir_only_warns_on_failure(tmp_path: Path, monkeypatch, caplog) -> None:
    def _boom(path: Path) -> None:
        raise PermissionError('read-only filesystem')

    monkeypatch.setattr(layout, 'clean_directory', _boom)

    with caplog.at_level(logging.WARNING):
        prepare_report_dir(tmp_path / 'report')

    assert "Couldn't clean directory" in caplog.text


def test_resolve_video_path_warns_when_missing(tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        path = resolve_video_path(tmp_path, 'clip.mp4')

    assert path == tmp_path / 'clip.mp4'
    assert 'Source video not found' in caplog.text
