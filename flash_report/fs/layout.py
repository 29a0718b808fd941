"""Report directory setup and input discovery helpers."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> Path:
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
        logger.info("Directory created: %s", path)
    return path


def clean_directory(path: Path) -> None:
    """Remove everything inside ``path``, creating it first if needed."""

    ensure_dir(path)
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
    logger.info("Directory cleaned: %s", path)


def prepare_report_dir(path: Path) -> None:
    """Clear stale output from a previous run; failures only warn."""

    try:
        clean_directory(path)
    except OSError as exc:
        logger.warning("Couldn't clean directory %s: %s", path, exc)


def resolve_video_path(video_dir: Path, source_video_id: str) -> Path:
    video = video_dir / source_video_id
    if not video.exists():
        logger.warning("Source video not found: %s (frame captures will fail)", video)
    return video
