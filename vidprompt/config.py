from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
ENV_PREFIX = "VIDPROMPT_"


class SamplingSettings(BaseModel):
    min_scenes: int = 3
    max_scenes: int = 10
    seconds_per_step: float = 20.0
    tail_guard_seconds: float = 0.1
    target_sampled_pixels: int = 55000


class BriefSettings(BaseModel):
    tone: str = "cinematic realism"
    objective: str = "storyboard breakdown"
    style_preset: str = "hyper-detailed"
    focus_areas: list[str] = Field(default_factory=lambda: ["visuals", "lighting", "narrative"])
    granularity: int = 4


class OutputSettings(BaseModel):
    output_dir: Path = Path("data/outputs")


class LoggingSettings(BaseModel):
    level: str = "INFO"


class Settings(BaseModel):
    sampling: SamplingSettings = Field(default_factory=SamplingSettings)
    brief: BriefSettings = Field(default_factory=BriefSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load typed settings from YAML with environment-variable overrides."""

    resolved_path = Path(
        config_path
        or os.getenv(f"{ENV_PREFIX}CONFIG")
        or DEFAULT_CONFIG_PATH
    )
    raw_config: dict[str, Any] = {}
    if resolved_path.exists():
        raw_config = yaml.safe_load(resolved_path.read_text(encoding="utf-8")) or {}
    data = Settings.model_validate(raw_config).model_dump(mode="python")

    for key, raw_value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        suffix = key[len(ENV_PREFIX) :]
        if suffix == "CONFIG":
            continue

        path = [part.lower() for part in suffix.split("__")]
        _apply_override(data, path, raw_value)

    return Settings.model_validate(data)


def _apply_override(data: dict[str, Any], path: list[str], raw_value: str) -> None:
    current: Any = data
    for segment in path[:-1]:
        if not isinstance(current, dict) or segment not in current:
            return
        current = current[segment]

    if not isinstance(current, dict):
        return

    final_key = path[-1]
    if final_key not in current:
        return

    current[final_key] = _coerce_value(raw_value, current[final_key])


def _coerce_value(raw_value: str, existing_value: Any) -> Any:
    if isinstance(existing_value, bool):
        return raw_value.lower() in {"1", "true", "yes", "on"}
    if isinstance(existing_value, int) and not isinstance(existing_value, bool):
        return int(raw_value)
    if isinstance(existing_value, float):
        return float(raw_value)
    if isinstance(existing_value, list):
        if raw_value.lstrip().startswith("["):
            return json.loads(raw_value)
        return [part.strip() for part in raw_value.split(",") if part.strip()]
    if isinstance(existing_value, dict):
        return json.loads(raw_value)
    if isinstance(existing_value, Path):
        return Path(raw_value)
    return raw_value
