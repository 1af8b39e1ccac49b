from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from time import perf_counter
from typing import Any, Callable, NoReturn, TypeVar

import typer

from vidprompt.config import Settings, load_settings
from vidprompt.export.exporter import export_prompt_bundle, export_scenes
from vidprompt.generator import PromptGenerator
from vidprompt.ingest.probe import probe_video
from vidprompt.logging_config import configure_logging
from vidprompt.models import VideoMeta
from vidprompt.options import FOCUS_OPTIONS, OBJECTIVE_OPTIONS, STYLE_PRESETS, TONE_OPTIONS, build_configuration
from vidprompt.sampling.media import OffscreenSurface, OpenCVVideoHandle

app = typer.Typer(help="Turn sampled video frames into prompts for generative models.")
config_app = typer.Typer(help="Configuration commands.")

app.add_typer(config_app, name="config")

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIG_OPTION_DEFAULT = Path("configs/default.yaml")


def _config_option() -> Any:
    return typer.Option(
        CONFIG_OPTION_DEFAULT,
        "--config",
        "-c",
        envvar="VIDPROMPT_CONFIG",
        help="Path to YAML configuration file.",
    )


def _run_with_progress(step_index: int, total_steps: int, label: str, work: Callable[[], T]) -> T:
    typer.echo(f"[{step_index}/{total_steps}] {label}...", err=True)
    started_at = perf_counter()
    try:
        result = work()
    except Exception:
        elapsed = perf_counter() - started_at
        typer.echo(f"[{step_index}/{total_steps}] {label} failed after {elapsed:.1f}s", err=True)
        raise
    elapsed = perf_counter() - started_at
    typer.echo(f"[{step_index}/{total_steps}] {label} done in {elapsed:.1f}s", err=True)
    return result


def _bootstrap(config_path: Path, verbose: bool = False) -> Settings:
    settings = load_settings(config_path)
    configure_logging(settings.logging, verbose=verbose)
    logger.debug("Loaded runtime settings from %s", config_path)
    return settings


def _open_video(video_path: str, meta: VideoMeta) -> OpenCVVideoHandle:
    return OpenCVVideoHandle.open(video_path, meta=meta)


def _fail(exc: Exception) -> NoReturn:
    logger.error("Command failed: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


@config_app.command("show")
def show_config(config_path: Path = _config_option()) -> None:
    """Print resolved runtime configuration."""

    settings = _bootstrap(config_path)
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))


@app.command("options")
def list_options() -> None:
    """List the supported tones, objectives, style presets and focus areas."""

    typer.echo(
        json.dumps(
            {
                "tones": list(TONE_OPTIONS),
                "objectives": list(OBJECTIVE_OPTIONS),
                "style_presets": list(STYLE_PRESETS),
                "focus_areas": {option_id: label for option_id, label in FOCUS_OPTIONS},
            },
            indent=2,
        )
    )


@app.command("probe")
def probe(video_path: str, config_path: Path = _config_option()) -> None:
    """Validate a video and print its duration and resolution."""

    _bootstrap(config_path)
    try:
        meta = probe_video(video_path)
    except (RuntimeError, ValueError) as exc:
        _fail(exc)
    logger.info("Probe completed for %s", video_path)
    typer.echo(json.dumps(asdict(meta), indent=2))


@app.command("preview")
def preview(
    video_path: str,
    config_path: Path = _config_option(),
    granularity: int | None = typer.Option(None, min=1, max=7, help="Scene granularity 1-7."),
) -> None:
    """Show how many scenes would be sampled and at which timestamps."""

    settings = _bootstrap(config_path)
    resolved_granularity = granularity or settings.brief.granularity
    try:
        meta = probe_video(video_path)
    except (RuntimeError, ValueError) as exc:
        _fail(exc)

    generator = PromptGenerator(settings.sampling)
    points = generator.capture_points(meta.duration, resolved_granularity)
    typer.echo(
        json.dumps(
            {
                "duration_seconds": round(meta.duration, 3),
                "resolution": f"{meta.width}x{meta.height}",
                "granularity": resolved_granularity,
                "scene_count": generator.scene_count(meta.duration, resolved_granularity),
                "capture_points": [round(point, 3) for point in points],
            },
            indent=2,
        )
    )


@app.command("generate")
def generate(
    video_path: str,
    config_path: Path = _config_option(),
    tone: str | None = typer.Option(None, help="Creative tone (see `options`)."),
    objective: str | None = typer.Option(None, help="Prompt objective (see `options`)."),
    style: str | None = typer.Option(None, "--style", help="Style preset (see `options`)."),
    focus: list[str] | None = typer.Option(None, "--focus", "-f", help="Focus area id; repeat to select several."),
    no_focus: bool = typer.Option(False, "--no-focus", help="Clear the default focus areas."),
    granularity: int | None = typer.Option(None, min=1, max=7, help="Scene granularity 1-7."),
    title: str = typer.Option("", help="Project title."),
    audience: str = typer.Option("", help="Audience or usage notes."),
    directives: str = typer.Option("", help="Extra directives appended to the prompt."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the compiled prompt to this file."),
    scenes_out: Path | None = typer.Option(None, help="Write scene prompts to a .json or .csv file."),
    bundle: bool = typer.Option(False, help="Write prompt and scene tables to the configured output directory."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Sample frames from a video and compile a structured prompt."""

    settings = _bootstrap(config_path, verbose=verbose)
    brief = settings.brief

    try:
        config = build_configuration(
            tone=tone or brief.tone,
            objective=objective or brief.objective,
            style_preset=style or brief.style_preset,
            focus_areas=() if no_focus else (focus or brief.focus_areas),
            granularity=granularity or brief.granularity,
            project_title=title,
            audience_notes=audience,
            custom_directives=directives,
        )
        meta = _run_with_progress(1, 2, "Probe video", lambda: probe_video(video_path))

        generator = PromptGenerator(settings.sampling)
        typer.echo(
            f"[2/2] Sampling {generator.scene_count(meta.duration, config.granularity)} scenes...",
            err=True,
        )

        def _echo_progress(current: int, total: int) -> None:
            typer.echo(f"[2/2] Captured scene {current} / {total}", err=True)

        with _open_video(video_path, meta) as video:
            result = asyncio.run(
                generator.generate(video, OffscreenSurface(), config, on_progress=_echo_progress)
            )
    except (RuntimeError, ValueError) as exc:
        _fail(exc)

    if result is None:
        _fail(RuntimeError("Generation was reset before it completed."))

    typer.echo(result.status, err=True)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.compiled_prompt + "\n", encoding="utf-8")
        typer.echo(f"Prompt written to {output}", err=True)
    if scenes_out is not None:
        typer.echo(f"Scenes written to {export_scenes(result.scenes, scenes_out)}", err=True)
    if bundle:
        exported = export_prompt_bundle(
            result,
            settings.output.output_dir,
            basename=Path(video_path).stem or "video_prompt",
        )
        typer.echo(json.dumps({k: str(v) for k, v in exported.items()}, indent=2), err=True)
    if output is None:
        typer.echo(result.compiled_prompt)


if __name__ == "__main__":
    app()
