"""Helpers that wrap FFmpeg invocations."""
from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from ..models.core import Timestamp

logger = logging.getLogger(__name__)


class FrameCaptureError(RuntimeError):
    """FFmpeg could not produce a still for the requested timestamp."""


def which_or_die(name: str) -> str:
    path = shutil.which(name)
    if not path:
        raise RuntimeError(f"Required executable not found in PATH: {name}")
    return path


def build_screenshot_command(
    ffmpeg_exe: str,
    video_path: Path,
    timestamp: Timestamp,
    output_path: Path,
    resolution: Tuple[int, int],
) -> List[str]:
    width, height = resolution
    return [
        ffmpeg_exe,
        "-hide_banner",
        "-loglevel",
        "error",
        "-nostdin",
        "-y",
        "-ss",
        timestamp.for_ffmpeg(),
        "-i",
        str(video_path),
        "-frames:v",
        "1",
        "-vf",
        f"scale={width}:{height}",
        str(output_path),
    ]


async def capture_frame(
    ffmpeg_exe: str,
    video_path: Path,
    timestamp: Timestamp,
    output_dir: Path,
    filename: str,
    *,
    resolution: Tuple[int, int],
    timeout_s: Optional[float] = None,
) -> Path:
    """Grab a single frame at ``timestamp`` and write it to ``output_dir/filename``."""

    output_path = output_dir / filename
    cmd = build_screenshot_command(ffmpeg_exe, video_path, timestamp, output_path, resolution)
    logger.info("Creating: %s", output_path)
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise FrameCaptureError(
            f"FFmpeg timed out after {timeout_s}s capturing {timestamp} from {video_path.name}"
        ) from None
    except asyncio.CancelledError:
        proc.kill()
        await asyncio.shield(proc.wait())
        raise

    if proc.returncode != 0:
        message = stderr.decode("utf-8", "replace").strip()
        raise FrameCaptureError(
            f"FFmpeg failed (rc={proc.returncode}) capturing {timestamp} from {video_path.name}\n{message}"
        )
    if not output_path.exists():
        raise FrameCaptureError(f"FFmpeg produced no image at {output_path}")
    logger.info("Image captured: %s", output_path)
    return output_path
