from __future__ import annotations

from typing import Sequence

from vidprompt.models import CaptureConfiguration, ScenePrompt
from vidprompt.prompting.scene_prompt import capitalize, focus_list, format_time

DEFAULT_PROJECT_TITLE = "Untitled video prompt"


def build_master_prompt(scenes: Sequence[ScenePrompt], config: CaptureConfiguration) -> str:
    """Compile every scene and the creative brief into one prompt document.

    Optional lines are dropped entirely when their input is empty. The extra
    directives line, when present, is set off from the scene block by one blank line.
    """

    focus_line = f"Prioritise {focus_list(config.focus_areas)}." if config.focus_areas else ""
    scene_lines = "\n".join(_ingredient_line(scene) for scene in scenes)
    summary_lines = "\n".join(scene.summary for scene in scenes)

    lines = [
        f"Project: {config.project_title}" if config.project_title else f"Project: {DEFAULT_PROJECT_TITLE}",
        f"Objective: {capitalize(config.objective)} for AI generation.",
        f"Creative tone: {capitalize(config.tone)} blended with {config.style_preset}.",
        focus_line,
        f"Audience / usage: {config.audience_notes}" if config.audience_notes else "",
        "Scene ingredients:",
        scene_lines,
        "Detailed prompt instructions:",
        summary_lines,
        f"\nExtra directives: {config.custom_directives}" if config.custom_directives else "",
    ]
    return "\n".join(line for line in lines if line)


def _ingredient_line(scene: ScenePrompt) -> str:
    analysis = scene.analysis
    return f"- {format_time(scene.timestamp)} · {analysis.palette}, {analysis.lighting}, {analysis.energy}."
