from __future__ import annotations

import asyncio

import pytest

from vidprompt.config import SamplingSettings
from vidprompt.errors import GENERIC_FAILURE_MESSAGE, AnalysisFailedError, GeneratorBusyError
from vidprompt.generator import STATUS_READY, PromptGenerator
from vidprompt.options import build_configuration


def _config(**overrides):
    return build_configuration(**overrides)


def test_generate_forty_second_clip_end_to_end(fake_video_factory, fake_surface) -> None:
    video = fake_video_factory(duration=40.0, bgr=(0, 0, 0))
    generator = PromptGenerator()
    progress: list[tuple[int, int]] = []

    result = asyncio.run(
        generator.generate(video, fake_surface, _config(granularity=4), on_progress=lambda i, n: progress.append((i, n)))
    )

    assert result is not None
    assert len(result.scenes) == 10
    assert [scene.index for scene in result.scenes] == list(range(10))
    timestamps = [scene.timestamp for scene in result.scenes]
    assert timestamps == video.seeks
    assert all(later > earlier for earlier, later in zip(timestamps, timestamps[1:]))
    assert all(0 <= t < 40.0 for t in timestamps)
    assert progress == [(i, 10) for i in range(1, 11)]
    assert fake_surface.draw_count == 10

    lines = result.compiled_prompt.split("\n")
    ingredients_start = lines.index("Scene ingredients:") + 1
    instructions_start = lines.index("Detailed prompt instructions:") + 1
    ingredient_lines = lines[ingredients_start : instructions_start - 1]
    instruction_lines = lines[instructions_start : instructions_start + 10]

    assert len(ingredient_lines) == 10
    assert all(line.startswith("- ") for line in ingredient_lines)
    assert instruction_lines == [scene.summary for scene in result.scenes]
    assert instruction_lines[0].startswith("Scene 1 (")
    assert instruction_lines[-1].startswith("Scene 10 (")

    assert generator.scene_prompts == result.scenes
    assert generator.compiled_prompt == result.compiled_prompt
    assert generator.status == STATUS_READY
    assert generator.processing is False


def test_generate_uses_frame_analysis(fake_video_factory, fake_surface) -> None:
    video = fake_video_factory(duration=12.0, bgr=(255, 255, 255))

    result = asyncio.run(PromptGenerator().generate(video, fake_surface, _config()))

    assert result is not None
    assert {scene.analysis.lighting for scene in result.scenes} == {"high-key lighting"}


def test_generate_respects_sampling_settings(fake_video_factory, fake_surface) -> None:
    generator = PromptGenerator(SamplingSettings(max_scenes=4))
    video = fake_video_factory(duration=120.0)

    result = asyncio.run(generator.generate(video, fake_surface, _config(granularity=7)))

    assert result is not None
    assert len(result.scenes) == 4


def test_seek_failure_aborts_run_with_generic_error(fake_video_factory, fake_surface) -> None:
    video = fake_video_factory(duration=40.0, fail_on_seek=3)
    generator = PromptGenerator()

    with pytest.raises(AnalysisFailedError, match="Unable to analyse the video frames"):
        asyncio.run(generator.generate(video, fake_surface, _config()))

    assert len(video.seeks) == 4
    assert generator.scene_prompts == ()
    assert generator.compiled_prompt == ""
    assert generator.status == GENERIC_FAILURE_MESSAGE
    assert generator.processing is False


def test_reset_during_run_discards_stale_results(fake_video_factory, fake_surface) -> None:
    video = fake_video_factory(duration=40.0)
    generator = PromptGenerator()

    def _reset_after_second_scene(current: int, total: int) -> None:
        if current == 2:
            generator.reset()

    result = asyncio.run(
        generator.generate(video, fake_surface, _config(), on_progress=_reset_after_second_scene)
    )

    assert result is None
    assert len(video.seeks) == 3
    assert generator.scene_prompts == ()
    assert generator.compiled_prompt == ""
    assert generator.status == ""
    assert generator.processing is False


def test_second_run_is_refused_while_busy(fake_video_factory, fake_surface) -> None:
    generator = PromptGenerator()

    async def _run_both() -> None:
        first = asyncio.ensure_future(
            generator.generate(fake_video_factory(duration=40.0), fake_surface, _config())
        )
        await asyncio.sleep(0)
        with pytest.raises(GeneratorBusyError):
            await generator.generate(fake_video_factory(duration=40.0), fake_surface, _config())
        await first

    asyncio.run(_run_both())

    assert len(generator.scene_prompts) == 10


def test_preview_helpers_match_sampler() -> None:
    generator = PromptGenerator()

    assert generator.scene_count(40.0, 4) == 10
    assert generator.scene_count(None, 4) == 0
    assert len(generator.capture_points(40.0, 4)) == 10
    assert generator.capture_points(0, 4) == []
