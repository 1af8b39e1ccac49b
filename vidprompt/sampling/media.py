from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Protocol

import numpy as np

from vidprompt.errors import InvalidInputError, SeekError
from vidprompt.models import VideoMeta

logger = logging.getLogger(__name__)

SEEKED = "seeked"
ERROR = "error"

Listener = Callable[..., None]


class MediaHandle(Protocol):
    """Seekable video source that signals ``seeked`` / ``error`` after a position change."""

    @property
    def meta(self) -> VideoMeta: ...

    @property
    def current_time(self) -> float: ...

    @current_time.setter
    def current_time(self, value: float) -> None: ...

    def add_listener(self, event: str, listener: Listener) -> None: ...

    def remove_listener(self, event: str, listener: Listener) -> None: ...

    def current_frame(self) -> np.ndarray: ...


class RenderSurface(Protocol):
    """Off-screen bitmap that receives video frames and yields RGBA bytes."""

    width: int
    height: int

    def resize(self, width: int, height: int) -> None: ...

    def draw(self, video: MediaHandle) -> None: ...

    def get_image_data(self) -> np.ndarray: ...


class OpenCVVideoHandle:
    """``cv2.VideoCapture`` wrapped as an event-signalling media handle.

    Setting ``current_time`` schedules the decode on the running event loop; the
    outcome is reported through the ``seeked`` or ``error`` listeners.
    """

    def __init__(self, capture: Any, meta: VideoMeta, *, cv2_module: Any) -> None:
        self._capture = capture
        self._meta = meta
        self._cv2 = cv2_module
        self._current_time = 0.0
        self._frame: np.ndarray | None = None
        self._listeners: dict[str, list[Listener]] = {SEEKED: [], ERROR: []}

    @classmethod
    def open(
        cls,
        video_path: str | Path,
        *,
        meta: VideoMeta | None = None,
        cv2_module: Any = None,
    ) -> OpenCVVideoHandle:
        source_path = Path(video_path).expanduser().resolve()
        if not source_path.exists():
            raise InvalidInputError(f"Video file not found: {source_path}")

        if cv2_module is None:
            import cv2 as cv2_module

        capture = cv2_module.VideoCapture(str(source_path))
        if not capture.isOpened():
            raise InvalidInputError(f"Unable to open video for frame sampling: {source_path}")

        resolved_meta = meta or _read_capture_meta(capture, cv2_module)
        if not resolved_meta.duration or resolved_meta.duration <= 0:
            capture.release()
            raise InvalidInputError(f"Video has no usable duration: {source_path}")

        logger.debug(
            "Opened %s (%.3fs, %dx%d)",
            source_path,
            resolved_meta.duration,
            resolved_meta.width,
            resolved_meta.height,
        )
        return cls(capture, resolved_meta, cv2_module=cv2_module)

    @property
    def meta(self) -> VideoMeta:
        return self._meta

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, value: float) -> None:
        self._current_time = float(value)
        asyncio.get_running_loop().call_soon(self._perform_seek, self._current_time)

    def add_listener(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def current_frame(self) -> np.ndarray:
        if self._frame is None:
            raise RuntimeError("No decoded frame is available; seek before drawing.")
        return self._frame

    def release(self) -> None:
        self._capture.release()

    def __enter__(self) -> OpenCVVideoHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def _perform_seek(self, timestamp: float) -> None:
        try:
            self._capture.set(self._cv2.CAP_PROP_POS_MSEC, timestamp * 1000.0)
            ok, frame = self._capture.read()
        except Exception as exc:
            self._emit(ERROR, SeekError(f"Seek to {timestamp:.3f}s failed: {exc}"))
            return

        if not ok or frame is None:
            self._emit(ERROR, SeekError(f"No frame could be decoded at {timestamp:.3f}s"))
            return

        self._frame = frame
        self._emit(SEEKED)

    def _emit(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(*args)


class OffscreenSurface:
    """RGBA bitmap sized to the video's native resolution."""

    def __init__(self, width: int = 0, height: int = 0, *, cv2_module: Any = None) -> None:
        self._cv2 = cv2_module
        self.width = 0
        self.height = 0
        self._bitmap = np.zeros((0, 0, 4), dtype=np.uint8)
        self.resize(width, height)

    def resize(self, width: int, height: int) -> None:
        self.width = max(int(width), 0)
        self.height = max(int(height), 0)
        self._bitmap = np.zeros((self.height, self.width, 4), dtype=np.uint8)

    def draw(self, video: MediaHandle) -> None:
        cv2 = self._cv2
        if cv2 is None:
            import cv2

        frame = video.current_frame()
        frame_height, frame_width = frame.shape[:2]
        if (frame_width, frame_height) != (self.width, self.height):
            frame = cv2.resize(frame, (self.width, self.height), interpolation=cv2.INTER_AREA)

        if frame.ndim == 2:
            rgba = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
        elif frame.shape[2] == 4:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
        else:
            rgba = cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
        self._bitmap[...] = rgba

    def get_image_data(self) -> np.ndarray:
        return self._bitmap.reshape(-1).copy()


def _read_capture_meta(capture: Any, cv2_module: Any) -> VideoMeta:
    fps = float(capture.get(cv2_module.CAP_PROP_FPS) or 0.0)
    frame_count = float(capture.get(cv2_module.CAP_PROP_FRAME_COUNT) or 0.0)
    width = int(capture.get(cv2_module.CAP_PROP_FRAME_WIDTH) or 0)
    height = int(capture.get(cv2_module.CAP_PROP_FRAME_HEIGHT) or 0)
    duration = frame_count / fps if fps > 0 else 0.0
    return VideoMeta(duration=duration, width=width, height=height)
