from __future__ import annotations

import numpy as np
import pytest

from vidprompt.analysis.color import (
    NEUTRAL_ANALYSIS,
    analyze_frame,
    describe_palette,
    rgb_to_hsl,
    sampling_stride,
)


def _solid(width: int, height: int, rgb: tuple[int, int, int]) -> np.ndarray:
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[..., 0], frame[..., 1], frame[..., 2] = rgb
    frame[..., 3] = 255
    return frame.reshape(-1)


def test_all_black_frame_descriptors() -> None:
    analysis = analyze_frame(_solid(16, 9, (0, 0, 0)), 16, 9)

    assert analysis.lighting == "shadow-heavy lighting"
    assert analysis.contrast == "soft contrast"
    assert analysis.saturation == "desaturated look"
    assert analysis.mood == "brooding atmosphere"
    assert analysis.palette == "graphite neutral"
    assert analysis.energy == "contemplative pacing"


def test_all_white_frame_descriptors() -> None:
    analysis = analyze_frame(_solid(16, 9, (255, 255, 255)), 16, 9)

    assert analysis.lighting == "high-key lighting"
    assert analysis.saturation == "desaturated look"
    assert analysis.palette == "graphite neutral"
    assert analysis.mood == "uplifting mood"


def test_empty_buffer_returns_neutral_analysis() -> None:
    analysis = analyze_frame(b"", 0, 0)

    assert analysis == NEUTRAL_ANALYSIS
    assert analysis.as_dict() == {
        "palette": "balanced palette",
        "lighting": "neutral lighting",
        "mood": "steady atmosphere",
        "energy": "controlled pacing",
    }


def test_half_black_half_white_frame_reads_as_high_contrast() -> None:
    frame = np.zeros((10, 10, 4), dtype=np.uint8)
    frame[5:, :, :3] = 255

    analysis = analyze_frame(frame.reshape(-1), 10, 10)

    assert analysis.contrast == "high contrast visuals"
    assert analysis.energy == "dynamic pacing"
    assert analysis.lighting == "balanced lighting"
    assert analysis.mood == "balanced mood"


def test_saturated_red_frame() -> None:
    analysis = analyze_frame(_solid(4, 4, (255, 0, 0)), 4, 4)

    assert analysis.palette == "soft rose"
    assert analysis.saturation == "vivid saturation"
    assert analysis.lighting == "low-key lighting"


def test_accepts_raw_bytes() -> None:
    buffer = bytes(_solid(4, 4, (255, 255, 255)))

    assert analyze_frame(buffer, 4, 4).lighting == "high-key lighting"


def test_sampling_stride_grows_with_resolution() -> None:
    assert sampling_stride(100, 100) == 4
    assert sampling_stride(1920, 1080) == (1920 * 1080 // 55000) * 4


def test_rgb_to_hsl_primary_colors() -> None:
    assert rgb_to_hsl(255, 0, 0) == (0.0, 1.0, 0.5)
    assert rgb_to_hsl(0, 255, 0) == (120.0, 1.0, 0.5)
    assert rgb_to_hsl(0, 0, 255) == (240.0, 1.0, 0.5)


def test_rgb_to_hsl_wraps_negative_hue() -> None:
    hue, saturation, _ = rgb_to_hsl(255, 0, 128)

    assert 330 <= hue < 360
    assert saturation == pytest.approx(1.0)


def test_rgb_to_hsl_grey_has_no_saturation() -> None:
    hue, saturation, lightness = rgb_to_hsl(128, 128, 128)

    assert hue == 0.0
    assert saturation == 0.0
    assert lightness == pytest.approx(128 / 255)


def test_palette_rules_first_match_wins() -> None:
    # matches both "crisp Arctic blue" and "moody indigo"
    assert describe_palette(220, 0.75, 0.31) == "crisp Arctic blue"
    assert describe_palette(245, 0.1, 0.3) == "moody indigo"
    # matches both "soft rose" and "graphite neutral"
    assert describe_palette(340, 0.05, 0.5) == "soft rose"


def test_palette_falls_back_to_balanced() -> None:
    assert describe_palette(240, 1.0, 0.5) == "balanced palette"
    assert describe_palette(None, 0.5, 0.5) == "balanced palette"


def test_palette_labels_from_pixel_averages() -> None:
    assert analyze_frame(_solid(4, 4, (40, 120, 220)), 4, 4).palette == "crisp Arctic blue"
    assert analyze_frame(_solid(4, 4, (20, 60, 140)), 4, 4).palette == "crisp Arctic blue"
    assert analyze_frame(_solid(4, 4, (30, 160, 100)), 4, 4).palette == "deep emerald"
