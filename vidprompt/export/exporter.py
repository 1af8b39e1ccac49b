from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Sequence

from vidprompt.models import GenerationResult, SceneAnalysis, ScenePrompt
from vidprompt.prompting.scene_prompt import format_time

CSV_FIELDS = [
    "index",
    "timestamp_seconds",
    "timecode",
    "palette",
    "lighting",
    "saturation",
    "contrast",
    "mood",
    "energy",
    "summary",
]


def export_scenes(scenes: Sequence[ScenePrompt], output_path: str | Path) -> Path:
    """Export scene prompts to JSON (default) or CSV, based on file extension."""

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() == ".csv":
        _write_csv(scenes, path)
    else:
        _write_json(scenes, path)

    return path


def export_prompt_bundle(
    result: GenerationResult,
    output_dir: str | Path,
    *,
    basename: str = "video_prompt",
) -> dict[str, Path]:
    """Write the compiled prompt plus JSON/CSV scene tables side by side."""

    resolved_output_dir = Path(output_dir)
    resolved_output_dir.mkdir(parents=True, exist_ok=True)

    prompt_path = resolved_output_dir / f"{basename}.txt"
    json_path = resolved_output_dir / f"{basename}_scenes.json"
    csv_path = resolved_output_dir / f"{basename}_scenes.csv"

    prompt_path.write_text(result.compiled_prompt + "\n", encoding="utf-8")
    export_scenes(result.scenes, json_path)
    export_scenes(result.scenes, csv_path)

    return {
        "prompt": prompt_path,
        "json": json_path,
        "csv": csv_path,
    }


def load_scene_prompts(path: str | Path) -> list[ScenePrompt]:
    """Load scene prompts previously written by ``export_scenes`` as JSON."""

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError("Scene export must be a JSON array.")

    scenes: list[ScenePrompt] = []
    for idx, row in enumerate(payload, start=1):
        if not isinstance(row, dict):
            raise ValueError(f"Scene row {idx} must be an object.")
        analysis = row.get("analysis", {})
        scenes.append(
            ScenePrompt(
                index=int(row["index"]),
                timestamp=float(row["timestamp_seconds"]),
                analysis=SceneAnalysis(
                    palette=str(analysis["palette"]),
                    lighting=str(analysis["lighting"]),
                    mood=str(analysis["mood"]),
                    energy=str(analysis["energy"]),
                    saturation=analysis.get("saturation"),
                    contrast=analysis.get("contrast"),
                ),
                summary=str(row["summary"]),
            )
        )

    return scenes


def _scene_payload(scene: ScenePrompt) -> dict[str, Any]:
    return {
        "index": scene.index,
        "timestamp_seconds": scene.timestamp,
        "timecode": format_time(scene.timestamp),
        "analysis": scene.analysis.as_dict(),
        "summary": scene.summary,
    }


def _write_json(scenes: Sequence[ScenePrompt], path: Path) -> None:
    payload = [_scene_payload(scene) for scene in scenes]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def _write_csv(scenes: Sequence[ScenePrompt], path: Path) -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for scene in scenes:
            analysis = scene.analysis
            writer.writerow(
                {
                    "index": scene.index,
                    "timestamp_seconds": f"{scene.timestamp:.3f}",
                    "timecode": format_time(scene.timestamp),
                    "palette": analysis.palette,
                    "lighting": analysis.lighting,
                    "saturation": analysis.saturation or "",
                    "contrast": analysis.contrast or "",
                    "mood": analysis.mood,
                    "energy": analysis.energy,
                    "summary": scene.summary,
                }
            )
