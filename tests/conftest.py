from __future__ import annotations

import asyncio

import numpy as np
import pytest

from vidprompt.models import VideoMeta


class FakeVideo:
    """In-memory media handle that settles each seek on the next loop iteration."""

    def __init__(
        self,
        duration: float = 40.0,
        width: int = 32,
        height: int = 18,
        bgr: tuple[int, int, int] = (0, 0, 0),
        fail_on_seek: int | None = None,
        double_signal: bool = False,
    ) -> None:
        self.meta = VideoMeta(duration=duration, width=width, height=height)
        self.bgr = bgr
        self.fail_on_seek = fail_on_seek
        self.double_signal = double_signal
        self.seeks: list[float] = []
        self.listeners: dict[str, list] = {"seeked": [], "error": []}
        self._time = 0.0
        self.released = False

    @property
    def current_time(self) -> float:
        return self._time

    @current_time.setter
    def current_time(self, value: float) -> None:
        self._time = value
        self.seeks.append(value)
        asyncio.get_running_loop().call_soon(self._settle, len(self.seeks) - 1)

    def add_listener(self, event: str, listener) -> None:
        self.listeners[event].append(listener)

    def remove_listener(self, event: str, listener) -> None:
        if listener in self.listeners[event]:
            self.listeners[event].remove(listener)

    def current_frame(self) -> np.ndarray:
        return np.full((self.meta.height, self.meta.width, 3), self.bgr, dtype=np.uint8)

    def __enter__(self) -> FakeVideo:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.released = True

    def _settle(self, seek_index: int) -> None:
        if self.fail_on_seek == seek_index:
            self._emit("error")
            if self.double_signal:
                self._emit("seeked")
            return
        self._emit("seeked")
        if self.double_signal:
            self._emit("error")

    def _emit(self, event: str) -> None:
        for listener in list(self.listeners[event]):
            listener()


class FakeSurface:
    """Numpy-only stand-in for the off-screen RGBA surface."""

    def __init__(self) -> None:
        self.width = 0
        self.height = 0
        self.draw_count = 0
        self._bitmap = np.zeros((0, 0, 4), dtype=np.uint8)

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._bitmap = np.zeros((height, width, 4), dtype=np.uint8)

    def draw(self, video) -> None:
        frame = video.current_frame()
        self._bitmap[..., 0] = frame[..., 2]
        self._bitmap[..., 1] = frame[..., 1]
        self._bitmap[..., 2] = frame[..., 0]
        self._bitmap[..., 3] = 255
        self.draw_count += 1

    def get_image_data(self) -> np.ndarray:
        return self._bitmap.reshape(-1).copy()


@pytest.fixture
def fake_video_factory():
    return FakeVideo


@pytest.fixture
def fake_surface() -> FakeSurface:
    return FakeSurface()
