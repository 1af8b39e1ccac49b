from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VideoMeta:
    """Native metadata of a loaded video."""

    duration: float
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class CaptureConfiguration:
    """Creative brief supplied by the caller; read-only for the pipeline."""

    tone: str
    objective: str
    style_preset: str
    focus_areas: tuple[str, ...] = ()
    granularity: int = 4
    project_title: str = ""
    audience_notes: str = ""
    custom_directives: str = ""


@dataclass(frozen=True, slots=True)
class SceneAnalysis:
    """Qualitative descriptors derived from one sampled frame."""

    palette: str
    lighting: str
    mood: str
    energy: str
    saturation: str | None = None
    contrast: str | None = None

    def descriptors(self) -> list[str]:
        ordered = [self.palette, self.lighting, self.saturation, self.contrast, self.mood, self.energy]
        return [value for value in ordered if value]

    def as_dict(self) -> dict[str, str]:
        payload = {
            "palette": self.palette,
            "lighting": self.lighting,
            "mood": self.mood,
            "energy": self.energy,
        }
        if self.saturation is not None:
            payload["saturation"] = self.saturation
        if self.contrast is not None:
            payload["contrast"] = self.contrast
        return payload


@dataclass(frozen=True, slots=True)
class ScenePrompt:
    """One sampled moment and the sentence rendered for it."""

    index: int
    timestamp: float
    analysis: SceneAnalysis
    summary: str


@dataclass(slots=True)
class GenerationResult:
    """Output of a completed generation run."""

    scenes: tuple[ScenePrompt, ...]
    compiled_prompt: str
    status: str = ""
