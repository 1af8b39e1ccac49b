from __future__ import annotations

import json
import logging
import mimetypes
import subprocess
from pathlib import Path
from typing import Any

from vidprompt.errors import InvalidInputError
from vidprompt.models import VideoMeta

logger = logging.getLogger(__name__)

_SHARED_LIBRARY_MARKER = "error while loading shared libraries"


def probe_video(video_path: str | Path) -> VideoMeta:
    """Validate a video file and read its duration and native resolution via ffprobe."""

    source_path = Path(video_path).expanduser().resolve()
    if not source_path.exists():
        raise InvalidInputError(f"Video file not found: {source_path}")

    ensure_video_file(source_path)

    payload = _run_ffprobe(source_path)
    meta = _video_meta_from_probe(source_path, payload)
    logger.debug("Probed %s: %s", source_path, meta)
    return meta


def ensure_video_file(video_path: Path) -> None:
    """Reject files whose guessed media type is not ``video/*``."""

    media_type, _ = mimetypes.guess_type(video_path.name)
    if not media_type or not media_type.startswith("video/"):
        raise InvalidInputError(f"Please choose a valid video file: {video_path.name}")


def _run_ffprobe(video_path: Path) -> dict[str, Any]:
    command = [
        "ffprobe",
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(video_path),
    ]

    try:
        completed = subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise RuntimeError(
            "ffprobe executable was not found. Install FFmpeg so ffprobe is available on PATH."
        ) from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        if _SHARED_LIBRARY_MARKER in stderr:
            raise RuntimeError(
                "ffprobe is installed but failed to start because required shared libraries are missing."
                f" ffprobe stderr: {stderr}"
            ) from exc
        raise InvalidInputError(
            f"ffprobe could not read media file: {video_path}. ffprobe stderr: {stderr or 'n/a'}"
        ) from exc

    try:
        return json.loads(completed.stdout)
    except json.JSONDecodeError as exc:
        raise RuntimeError("ffprobe returned invalid JSON output.") from exc


def _video_meta_from_probe(video_path: Path, payload: dict[str, Any]) -> VideoMeta:
    video_streams = [
        stream for stream in payload.get("streams", []) if stream.get("codec_type") == "video"
    ]
    if not video_streams:
        raise InvalidInputError(f"No video stream found in {video_path.name}")

    stream = video_streams[0]
    duration = _to_float(payload.get("format", {}).get("duration")) or _to_float(stream.get("duration"))
    if not duration or duration <= 0:
        raise InvalidInputError(f"Video has no usable duration: {video_path.name}")

    return VideoMeta(
        duration=duration,
        width=_to_int(stream.get("width")) or 0,
        height=_to_int(stream.get("height")) or 0,
    )


def _to_float(raw_value: Any) -> float | None:
    if raw_value in (None, "N/A", ""):
        return None
    return float(raw_value)


def _to_int(raw_value: Any) -> int | None:
    if raw_value in (None, "N/A", ""):
        return None
    return int(raw_value)
