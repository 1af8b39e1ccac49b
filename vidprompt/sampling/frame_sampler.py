from __future__ import annotations

import asyncio
import math

import numpy as np

from vidprompt.errors import SeekError
from vidprompt.sampling.media import ERROR, SEEKED, MediaHandle, RenderSurface

DEFAULT_MIN_SCENES = 3
DEFAULT_MAX_SCENES = 10
DEFAULT_SECONDS_PER_STEP = 20.0
DEFAULT_TAIL_GUARD_SECONDS = 0.1
SAFETY_MARGIN_SECONDS = 0.5


def compute_scene_count(
    duration: float | None,
    granularity: int,
    *,
    min_scenes: int = DEFAULT_MIN_SCENES,
    max_scenes: int = DEFAULT_MAX_SCENES,
    seconds_per_step: float = DEFAULT_SECONDS_PER_STEP,
) -> int:
    """Number of scenes to sample for a video; 0 until a duration is known."""

    if not duration or duration <= 0:
        return 0

    base = max(min_scenes, _round_half_up((duration / seconds_per_step) * (granularity + 1)))
    return min(max_scenes, base)


def compute_capture_points(
    duration: float | None,
    scene_count: int,
    *,
    tail_guard_seconds: float = DEFAULT_TAIL_GUARD_SECONDS,
) -> list[float]:
    """Evenly spaced timestamps strictly inside ``[0, duration)``."""

    if not duration or not scene_count:
        return []

    # max() keeps the full duration as the span; the margin never shrinks it
    span = max(duration - SAFETY_MARGIN_SECONDS, duration)
    step = span / (scene_count + 1)
    # the guard shrinks for very short clips so points never collapse onto one value
    guard = min(tail_guard_seconds, step / 2)
    return [min(duration - guard, step * index) for index in range(1, scene_count + 1)]


async def seek_to(video: MediaHandle, timestamp: float) -> None:
    """Move playback to ``timestamp`` and wait for the handle to report the outcome.

    Resolves on the first ``seeked`` or ``error`` signal; later signals are
    ignored. Listeners are removed once the wait is over.
    """

    loop = asyncio.get_running_loop()
    settled: asyncio.Future[None] = loop.create_future()

    def _on_seeked(*_: object) -> None:
        if not settled.done():
            settled.set_result(None)

    def _on_error(error: object = None, *_: object) -> None:
        if settled.done():
            return
        if isinstance(error, SeekError):
            settled.set_exception(error)
        else:
            settled.set_exception(SeekError(f"Seek to {timestamp:.3f}s failed"))

    video.add_listener(SEEKED, _on_seeked)
    video.add_listener(ERROR, _on_error)
    try:
        video.current_time = timestamp
        await settled
    finally:
        video.remove_listener(SEEKED, _on_seeked)
        video.remove_listener(ERROR, _on_error)


def capture_frame(video: MediaHandle, surface: RenderSurface) -> np.ndarray:
    """Draw the current frame at native resolution and read back flat RGBA bytes."""

    meta = video.meta
    if (surface.width, surface.height) != (meta.width, meta.height):
        surface.resize(meta.width, meta.height)
    surface.draw(video)
    return surface.get_image_data()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
