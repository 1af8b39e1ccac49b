from __future__ import annotations

import logging
from typing import Callable

from vidprompt.analysis.color import DEFAULT_TARGET_SAMPLED_PIXELS, analyze_frame
from vidprompt.config import SamplingSettings
from vidprompt.errors import AnalysisFailedError, GeneratorBusyError
from vidprompt.models import CaptureConfiguration, GenerationResult, ScenePrompt
from vidprompt.prompting.master_prompt import build_master_prompt
from vidprompt.prompting.scene_prompt import build_scene_prompt
from vidprompt.sampling.frame_sampler import (
    capture_frame,
    compute_capture_points,
    compute_scene_count,
    seek_to,
)
from vidprompt.sampling.media import MediaHandle, RenderSurface

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

STATUS_ANALYSING = "Analysing visual moments..."
STATUS_READY = "Prompt ready. Refine or copy as needed."


class PromptGenerator:
    """Runs frame sampling and prompt compilation for one video at a time.

    Each run holds a token. ``reset()`` invalidates the current token, so a run
    that is still waiting on a seek stops without publishing its scenes.
    """

    def __init__(self, sampling: SamplingSettings | None = None) -> None:
        self.sampling = sampling or SamplingSettings()
        self.scene_prompts: tuple[ScenePrompt, ...] = ()
        self.compiled_prompt = ""
        self.status = ""
        self.processing = False
        self._run_token = 0

    def scene_count(self, duration: float | None, granularity: int) -> int:
        return compute_scene_count(
            duration,
            granularity,
            min_scenes=self.sampling.min_scenes,
            max_scenes=self.sampling.max_scenes,
            seconds_per_step=self.sampling.seconds_per_step,
        )

    def capture_points(self, duration: float | None, granularity: int) -> list[float]:
        return compute_capture_points(
            duration,
            self.scene_count(duration, granularity),
            tail_guard_seconds=self.sampling.tail_guard_seconds,
        )

    def reset(self) -> None:
        """Discard published results and orphan any in-flight run."""

        self._run_token += 1
        self.scene_prompts = ()
        self.compiled_prompt = ""
        self.status = ""

    async def generate(
        self,
        video: MediaHandle,
        surface: RenderSurface,
        config: CaptureConfiguration,
        on_progress: ProgressCallback | None = None,
    ) -> GenerationResult | None:
        """Sample, analyse and compile prompts for ``video``.

        Returns ``None`` when the run was superseded by ``reset()``. Any failure
        while seeking, drawing or reading pixels is logged and surfaced as a
        single ``AnalysisFailedError``; scenes from the failed run are dropped.
        """

        if self.processing:
            raise GeneratorBusyError("A generation run is already in progress.")

        self._run_token += 1
        token = self._run_token
        self.processing = True
        self.status = STATUS_ANALYSING

        try:
            scenes = await self._sample_scenes(video, surface, config, token, on_progress)
            if scenes is None:
                logger.info("Generation run %d was reset; discarding results.", token)
                return None

            compiled = build_master_prompt(scenes, config)
        except Exception as exc:
            if token != self._run_token:
                logger.info("Generation run %d failed after reset; ignoring: %s", token, exc)
                return None
            logger.error("Frame analysis failed: %s", exc)
            failure = AnalysisFailedError()
            self.status = str(failure)
            raise failure from exc
        finally:
            self.processing = False

        if token != self._run_token:
            return None

        self.scene_prompts = scenes
        self.compiled_prompt = compiled
        self.status = STATUS_READY
        logger.info("Compiled prompt from %d scenes.", len(scenes))
        return GenerationResult(scenes=scenes, compiled_prompt=compiled, status=self.status)

    async def _sample_scenes(
        self,
        video: MediaHandle,
        surface: RenderSurface,
        config: CaptureConfiguration,
        token: int,
        on_progress: ProgressCallback | None,
    ) -> tuple[ScenePrompt, ...] | None:
        meta = video.meta
        surface.resize(meta.width, meta.height)
        capture_points = self.capture_points(meta.duration, config.granularity)
        total = len(capture_points)
        target_pixels = self.sampling.target_sampled_pixels or DEFAULT_TARGET_SAMPLED_PIXELS

        scenes: list[ScenePrompt] = []
        for index, timestamp in enumerate(capture_points):
            await seek_to(video, timestamp)
            if token != self._run_token:
                return None

            pixels = capture_frame(video, surface)
            analysis = analyze_frame(
                pixels,
                surface.width,
                surface.height,
                target_sampled_pixels=target_pixels,
            )
            scenes.append(
                ScenePrompt(
                    index=index,
                    timestamp=timestamp,
                    analysis=analysis,
                    summary=build_scene_prompt(index, timestamp, analysis, config),
                )
            )

            self.status = f"Captured scene {index + 1} / {total}"
            logger.debug("%s at %.3fs", self.status, timestamp)
            if on_progress is not None:
                on_progress(index + 1, total)

        return tuple(scenes)
