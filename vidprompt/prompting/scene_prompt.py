from __future__ import annotations

import math

from vidprompt.models import CaptureConfiguration, SceneAnalysis
from vidprompt.options import focus_label


def build_scene_prompt(
    scene_index: int,
    timestamp: float,
    analysis: SceneAnalysis,
    config: CaptureConfiguration,
) -> str:
    """Render one sampled scene as a single prompt sentence."""

    descriptors = "; ".join(analysis.descriptors())
    focus_text = f" emphasise {focus_list(config.focus_areas)}." if config.focus_areas else ""

    return (
        f"Scene {scene_index + 1} ({format_time(timestamp)}): {capitalize(config.tone)} tone with "
        f"{descriptors}.{focus_text} Keep alignment with {config.objective} in a "
        f"{config.style_preset} approach."
    )


def focus_list(focus_areas: tuple[str, ...]) -> str:
    return ", ".join(focus_label(focus_id) for focus_id in focus_areas)


def format_time(seconds: float) -> str:
    """Format seconds as ``MM:SS.cc``; non-finite input renders as ``00:00``."""

    if seconds is None or not math.isfinite(seconds):
        return "00:00"

    minutes = math.floor(seconds / 60)
    secs = math.floor(seconds % 60)
    millis = math.floor((seconds - math.floor(seconds)) * 1000)
    return f"{minutes:02d}:{secs:02d}.{millis // 10:02d}"


def capitalize(value: str) -> str:
    if not value:
        return ""
    return value[0].upper() + value[1:]
