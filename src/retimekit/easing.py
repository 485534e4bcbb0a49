from __future__ import annotations

import re
from dataclasses import dataclass

from retimekit.constants import DEFAULT_VELOCITY_SAMPLES
from retimekit.constants import VELOCITY_EPSILON
from retimekit.core import curve_for_pair
from retimekit.core import round_half_up
from retimekit.definitions import KeyframePair
from retimekit.definitions import NormalizedCurve
from retimekit.typehints import Frame
from retimekit.typehints import FrameRate
from retimekit.typehints import Milliseconds


@dataclass(slots=True, frozen=True)
class SpeedInfluence:
    """Speed-graph handle lengths as percentages of the interval."""

    out_influence: float
    in_influence: float


@dataclass(slots=True, frozen=True)
class KeyframeInfo:
    """Human-readable summary of one keyframe pair."""

    easing: str
    duration_ms: Milliseconds
    frame_duration: Frame
    property_name: str
    start_value: float
    end_value: float
    frame_rate: FrameRate


def influence_to_curve(influence: SpeedInfluence) -> NormalizedCurve:
    """Speed handles only carry timing, so y is flattened to 0 and 1."""
    return NormalizedCurve(
        x1=influence.out_influence / 100,
        y1=0.0,
        x2=1 - influence.in_influence / 100,
        y2=1.0,
    )


def curve_to_influence(curve: NormalizedCurve) -> SpeedInfluence:
    return SpeedInfluence(
        out_influence=curve.x1 * 100,
        in_influence=(1 - curve.x2) * 100,
    )


def velocity_at(curve: NormalizedCurve, t: float) -> float:
    """Absolute dy/dx of the curve at parameter t."""
    inv = 1 - t

    dy = 3 * inv * inv * curve.y1 + 6 * inv * t * (curve.y2 - curve.y1) + 3 * t * t * (1 - curve.y2)
    dx = 3 * inv * inv * curve.x1 + 6 * inv * t * (curve.x2 - curve.x1) + 3 * t * t * (1 - curve.x2)

    if abs(dx) <= VELOCITY_EPSILON:
        return 0.0
    return abs(dy / dx)


def sample_velocity(
    curve: NormalizedCurve, samples: int = DEFAULT_VELOCITY_SAMPLES
) -> list[float]:
    """Sample velocity at samples + 1 evenly spaced points, normalized to the peak."""
    if samples < 1:
        raise ValueError(f"Sample count must be at least 1, got {samples}")

    speeds = [velocity_at(curve, i / samples) for i in range(samples + 1)]
    peak = max(speeds)
    if peak < VELOCITY_EPSILON:
        peak = 1.0

    return [speed / peak for speed in speeds]


def clamped_for_display(curve: NormalizedCurve) -> NormalizedCurve:
    """
    Clamp x1 and x2 into [0, 1] for display.

    This loses overshoot timing and must not be fed back into retiming.
    """
    return NormalizedCurve(
        x1=max(0.0, min(1.0, curve.x1)),
        y1=curve.y1,
        x2=max(0.0, min(1.0, curve.x2)),
        y2=curve.y2,
    )


def frames_to_milliseconds(frames: Frame, frame_rate: FrameRate) -> Milliseconds:
    if frame_rate <= 0:
        raise ValueError(f"Frame rate must be positive, got {frame_rate}")
    return round_half_up(frames / frame_rate * 1000)


def readable_property_name(attribute: str) -> str:
    """'positionX' -> 'Position X'."""
    if not attribute:
        return attribute
    name = attribute[0].upper() + attribute[1:]
    return re.sub(r"([A-Z])", r" \1", name).strip()


def describe_pair(pair: KeyframePair, frame_rate: FrameRate, attribute: str) -> KeyframeInfo:
    """Summarize a keyframe pair's easing, duration and values."""
    curve = curve_for_pair(pair)
    if curve is None:
        raise ValueError("Keyframe pair has no easing curve (step or zero-length interval)")

    return KeyframeInfo(
        easing=clamped_for_display(curve).format(separator=","),
        duration_ms=frames_to_milliseconds(pair.frame_diff, frame_rate),
        frame_duration=pair.frame_diff,
        property_name=readable_property_name(attribute),
        start_value=round(pair.current.value, 2),
        end_value=round(pair.next.value, 2),
        frame_rate=frame_rate,
    )
