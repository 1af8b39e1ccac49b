from __future__ import annotations

from typing import Iterable

from vidprompt.errors import InvalidConfigurationError
from vidprompt.models import CaptureConfiguration

TONE_OPTIONS: tuple[str, ...] = (
    "cinematic realism",
    "dynamic commercial",
    "documentary",
    "whimsical",
    "moody noir",
    "vibrant lifestyle",
)

OBJECTIVE_OPTIONS: tuple[str, ...] = (
    "storyboard breakdown",
    "concept art brief",
    "shot list for directors",
    "narrative prompt",
    "style transfer prompt",
    "visual inspiration deck",
)

STYLE_PRESETS: tuple[str, ...] = (
    "hyper-detailed",
    "expressive and abstract",
    "grounded and minimalist",
    "high-energy montage",
    "slow cinematic drama",
    "immersive worldbuilding",
)

# (id, label) in display order
FOCUS_OPTIONS: tuple[tuple[str, str], ...] = (
    ("visuals", "Visual Style"),
    ("lighting", "Lighting"),
    ("narrative", "Narrative Beats"),
    ("motion", "Motion & Energy"),
    ("mood", "Mood & Atmosphere"),
    ("audio", "Audio / Sound"),
)

DEFAULT_FOCUS_AREAS: tuple[str, ...] = ("visuals", "lighting", "narrative")
MIN_GRANULARITY = 1
MAX_GRANULARITY = 7


def focus_label(focus_id: str) -> str:
    """Human-readable, lower-cased label for a focus id; unknown ids pass through."""

    for option_id, label in FOCUS_OPTIONS:
        if option_id == focus_id:
            return label.lower()
    return focus_id


def toggle_focus(selection: tuple[str, ...], focus_id: str) -> tuple[str, ...]:
    """Return a new selection with ``focus_id`` added or removed.

    Newly selected ids go to the end, so iteration order follows selection order.
    """

    if focus_id in selection:
        return tuple(item for item in selection if item != focus_id)
    return (*selection, focus_id)


def normalize_focus_areas(focus_ids: Iterable[str]) -> tuple[str, ...]:
    seen: list[str] = []
    for focus_id in focus_ids:
        if focus_id not in seen:
            seen.append(focus_id)
    return tuple(seen)


def build_configuration(
    *,
    tone: str = TONE_OPTIONS[0],
    objective: str = OBJECTIVE_OPTIONS[0],
    style_preset: str = STYLE_PRESETS[0],
    focus_areas: Iterable[str] = DEFAULT_FOCUS_AREAS,
    granularity: int = 4,
    project_title: str = "",
    audience_notes: str = "",
    custom_directives: str = "",
) -> CaptureConfiguration:
    """Validate caller input against the fixed option sets and build a configuration."""

    _require_option("tone", tone, TONE_OPTIONS)
    _require_option("objective", objective, OBJECTIVE_OPTIONS)
    _require_option("style preset", style_preset, STYLE_PRESETS)

    known_focus = {option_id for option_id, _ in FOCUS_OPTIONS}
    resolved_focus = normalize_focus_areas(focus_areas)
    unknown = [focus_id for focus_id in resolved_focus if focus_id not in known_focus]
    if unknown:
        raise InvalidConfigurationError(f"Unknown focus area(s): {', '.join(unknown)}.")

    if not MIN_GRANULARITY <= int(granularity) <= MAX_GRANULARITY:
        raise InvalidConfigurationError(
            f"Granularity must be between {MIN_GRANULARITY} and {MAX_GRANULARITY}, got {granularity}."
        )

    return CaptureConfiguration(
        tone=tone,
        objective=objective,
        style_preset=style_preset,
        focus_areas=resolved_focus,
        granularity=int(granularity),
        project_title=project_title.strip(),
        audience_notes=audience_notes.strip(),
        custom_directives=custom_directives.strip(),
    )


def _require_option(name: str, value: str, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        raise InvalidConfigurationError(
            f"Unsupported {name} '{value}'. Choose one of: {', '.join(allowed)}."
        )
