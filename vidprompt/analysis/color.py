from __future__ import annotations

import math
from typing import Any, Callable

import numpy as np

from vidprompt.models import SceneAnalysis

DEFAULT_TARGET_SAMPLED_PIXELS = 55000
BYTES_PER_PIXEL = 4

NEUTRAL_ANALYSIS = SceneAnalysis(
    palette="balanced palette",
    lighting="neutral lighting",
    mood="steady atmosphere",
    energy="controlled pacing",
)

Rule = tuple[Callable[..., bool], str]

# Hue rules only apply to chromatic colors; ``h`` is None for greys.
PALETTE_RULES: tuple[Rule, ...] = (
    (lambda h, s, l: h is not None and 200 <= h < 240 and s > 0.2, "crisp Arctic blue"),
    (lambda h, s, l: h is not None and 260 <= h < 300 and s > 0.35, "electric violet"),
    (lambda h, s, l: h is not None and 30 <= h < 60 and l > 0.55, "sunlit amber"),
    (lambda h, s, l: h is not None and 130 <= h < 170 and s > 0.25, "deep emerald"),
    (lambda h, s, l: h is not None and 210 <= h < 250 and l < 0.45, "moody indigo"),
    (lambda h, s, l: h is not None and 20 <= h < 50 and s < 0.25, "faded sepia"),
    (lambda h, s, l: h is not None and (h >= 330 or h < 15), "soft rose"),
    (lambda h, s, l: s < 0.12, "graphite neutral"),
)
DEFAULT_PALETTE = "balanced palette"

LIGHTING_RULES: tuple[Rule, ...] = (
    (lambda luma: luma > 200, "high-key lighting"),
    (lambda luma: luma > 150, "well-lit scene"),
    (lambda luma: luma > 100, "balanced lighting"),
    (lambda luma: luma > 60, "low-key lighting"),
    (lambda luma: True, "shadow-heavy lighting"),
)

CONTRAST_RULES: tuple[Rule, ...] = (
    (lambda contrast: contrast > 0.55, "high contrast visuals"),
    (lambda contrast: contrast > 0.35, "structured contrast"),
    (lambda contrast: True, "soft contrast"),
)

SATURATION_RULES: tuple[Rule, ...] = (
    (lambda s: s > 0.6, "vivid saturation"),
    (lambda s: s > 0.35, "rich tones"),
    (lambda s: s > 0.2, "muted palette"),
    (lambda s: True, "desaturated look"),
)

MOOD_RULES: tuple[Rule, ...] = (
    (lambda l: l > 0.65, "uplifting mood"),
    (lambda l: l > 0.45, "balanced mood"),
    (lambda l: l > 0.28, "introspective mood"),
    (lambda l: True, "brooding atmosphere"),
)

ENERGY_RULES: tuple[Rule, ...] = (
    (lambda contrast, s: contrast > 0.55 and s > 0.35, "kinetic energy"),
    (lambda contrast, s: contrast > 0.35, "dynamic pacing"),
    (lambda contrast, s: True, "contemplative pacing"),
)


def analyze_frame(
    pixels: Any,
    width: int,
    height: int,
    *,
    target_sampled_pixels: int = DEFAULT_TARGET_SAMPLED_PIXELS,
) -> SceneAnalysis:
    """Reduce an RGBA pixel buffer to qualitative color and lighting descriptors.

    Pixels are read at a stride that grows with resolution so the number of
    sampled pixels stays near ``target_sampled_pixels``. A buffer that yields no
    samples gets the neutral analysis instead of an error.
    """

    data = _as_byte_array(pixels)
    stride = sampling_stride(width, height, target_sampled_pixels=target_sampled_pixels)

    # every sampled offset needs its R, G and B bytes inside the buffer
    offsets = np.arange(0, max(data.size - 2, 0), stride)
    if offsets.size == 0:
        return NEUTRAL_ANALYSIS

    red = data[offsets].astype(np.float64)
    green = data[offsets + 1].astype(np.float64)
    blue = data[offsets + 2].astype(np.float64)
    luma = 0.299 * red + 0.587 * green + 0.114 * blue

    sampled = int(offsets.size)
    avg_r = float(red.sum()) / sampled
    avg_g = float(green.sum()) / sampled
    avg_b = float(blue.sum()) / sampled
    avg_luma = float(luma.sum()) / sampled
    contrast = (float(luma.max()) - float(luma.min())) / 255.0

    hue, saturation, lightness = rgb_to_hsl(avg_r, avg_g, avg_b)

    return SceneAnalysis(
        palette=describe_palette(hue if saturation > 0 else None, saturation, lightness),
        lighting=_first_match(LIGHTING_RULES, avg_luma),
        contrast=_first_match(CONTRAST_RULES, contrast),
        saturation=_first_match(SATURATION_RULES, saturation),
        mood=_first_match(MOOD_RULES, lightness),
        energy=_first_match(ENERGY_RULES, contrast, saturation),
    )


def sampling_stride(
    width: int,
    height: int,
    *,
    target_sampled_pixels: int = DEFAULT_TARGET_SAMPLED_PIXELS,
) -> int:
    """Byte stride between sampled pixels; always a whole number of RGBA pixels."""

    total_pixels = max(int(width), 0) * max(int(height), 0)
    return max(BYTES_PER_PIXEL, (total_pixels // max(target_sampled_pixels, 1)) * BYTES_PER_PIXEL)


def describe_palette(hue: float | None, saturation: float, lightness: float) -> str:
    """Name the dominant palette; the first matching rule wins."""

    return _first_match(PALETTE_RULES, hue, saturation, lightness, default=DEFAULT_PALETTE)


def rgb_to_hsl(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Convert 0-255 RGB to (hue degrees, saturation 0-1, lightness 0-1).

    Hue is rounded to whole degrees and is 0 for greys.
    """

    r_norm = r / 255.0
    g_norm = g / 255.0
    b_norm = b / 255.0

    maximum = max(r_norm, g_norm, b_norm)
    minimum = min(r_norm, g_norm, b_norm)
    delta = maximum - minimum

    hue = 0.0
    if delta != 0:
        if maximum == r_norm:
            # truncating remainder keeps the sign, negatives are wrapped below
            hue = math.fmod((g_norm - b_norm) / delta, 6)
        elif maximum == g_norm:
            hue = (b_norm - r_norm) / delta + 2
        else:
            hue = (r_norm - g_norm) / delta + 4
        hue = float(math.floor(hue * 60 + 0.5))
        if hue < 0:
            hue += 360

    lightness = (maximum + minimum) / 2
    saturation = 0.0 if delta == 0 else delta / (1 - abs(2 * lightness - 1))

    return hue, saturation, lightness


def _first_match(rules: tuple[Rule, ...], *values: Any, default: str | None = None) -> str:
    for predicate, label in rules:
        if predicate(*values):
            return label
    if default is None:
        raise ValueError("Descriptor rules did not produce a label.")
    return default


def _as_byte_array(pixels: Any) -> np.ndarray:
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        if len(pixels) == 0:
            return np.zeros(0, dtype=np.uint8)
        return np.frombuffer(pixels, dtype=np.uint8)
    return np.asarray(pixels, dtype=np.uint8).reshape(-1)
