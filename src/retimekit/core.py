"""
Bezier retiming engine.

Converts between host tangent handles and normalized cubic-bezier curves,
retargets keyframe frames under a frame-rate ratio without letting two
keyframes share a frame, and re-derives handles for the new time base.

Everything here is pure: inputs are never mutated and nothing touches a host.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from retimekit.constants import FLAT_VALUE_EPSILON
from retimekit.definitions import BezierHandle
from retimekit.definitions import HandlePair
from retimekit.definitions import InterpolationKind
from retimekit.definitions import KeyframePair
from retimekit.definitions import KeyframeWrite
from retimekit.definitions import NormalizedCurve
from retimekit.definitions import RetimingRequest
from retimekit.typehints import Frame
from retimekit.typehints import FrameIndex


class RetimeError(Exception):
    """Base error for a single attribute's retiming."""


class DegenerateIntervalError(RetimeError):
    """Two keyframes share a frame, so the pair has no time span."""


class CollisionResolutionExhausted(RetimeError):
    """Retargeted frames are not strictly increasing."""


def round_half_up(value: float) -> FrameIndex:
    """Round to the nearest integer with .5 going up, matching host rounding."""
    return math.floor(value + 0.5)


def to_normalized(
    out_handle: BezierHandle,
    in_handle: BezierHandle,
    frame_diff: Frame,
    value_diff: float,
) -> NormalizedCurve:
    """Convert a pair's absolute-offset handles into a normalized curve."""
    if frame_diff <= 0:
        raise DegenerateIntervalError(f"Keyframe interval must be positive, got {frame_diff}")

    # Flat value channel: fall back to the identity endpoints.
    if abs(value_diff) > FLAT_VALUE_EPSILON:
        y1 = out_handle.y / value_diff
        y2 = 1 + in_handle.y / value_diff
    else:
        y1 = 0.0
        y2 = 1.0

    return NormalizedCurve(
        x1=out_handle.x / frame_diff,
        y1=y1,
        x2=(frame_diff + in_handle.x) / frame_diff,
        y2=y2,
    )


def to_handles(curve: NormalizedCurve, frame_diff: Frame, value_diff: float) -> HandlePair:
    """Scale a normalized curve back to handles for the given spans."""
    return HandlePair(
        out_handle=BezierHandle(curve.x1 * frame_diff, curve.y1 * value_diff),
        in_handle=BezierHandle((curve.x2 - 1) * frame_diff, (curve.y2 - 1) * value_diff),
    )


def _pull_back(
    rounded: list[FrameIndex], exact: Sequence[float], index: int, kept_error: float
) -> bool:
    """Shift earlier keyframes below rounded[index], if all of them are less accurate."""
    proposed = rounded[:index]
    ceiling = rounded[index]

    for j in range(index - 1, -1, -1):
        if proposed[j] < ceiling:
            break
        if abs(rounded[j] - exact[j]) <= kept_error:
            return False
        proposed[j] = ceiling - 1
        ceiling = proposed[j]

    rounded[:index] = proposed
    return True


def _check_strictly_increasing(frames: Sequence[FrameIndex]) -> None:
    for i in range(1, len(frames)):
        if frames[i] <= frames[i - 1]:
            raise CollisionResolutionExhausted(
                f"Frame {frames[i]} at position {i} does not follow {frames[i - 1]}"
            )


def retarget(frames: Sequence[Frame], ratio: float) -> list[FrameIndex]:
    """
    Scale keyframe frames by ratio and round them to a strictly increasing sequence.

    When two neighbours round onto the same frame (or cross), the one whose
    rounding error is smaller keeps its slot and the other is displaced by
    one frame. Displacing earlier keyframes may cascade backward; that
    cascade is only taken when every keyframe it moves was rounded less
    accurately than the current one, otherwise the current keyframe moves
    forward instead.
    """
    if ratio <= 0:
        raise ValueError(f"Ratio must be positive, got {ratio}")

    exact = [frame * ratio for frame in frames]
    rounded = [round_half_up(value) for value in exact]

    for i in range(1, len(rounded)):
        if rounded[i] > rounded[i - 1]:
            continue

        previous_error = abs(rounded[i - 1] - exact[i - 1])
        current_error = abs(rounded[i] - exact[i])

        if previous_error <= current_error or not _pull_back(rounded, exact, i, current_error):
            rounded[i] = rounded[i - 1] + 1

    _check_strictly_increasing(rounded)
    return rounded


def retime_curve(
    pair: KeyframePair, new_frame_diff: Frame, new_value_diff: float
) -> HandlePair | None:
    """Re-derive a Bezier pair's handles for a new span; None when the pair is skipped."""
    if not pair.is_bezier or pair.is_degenerate:
        return None

    handles = pair.handles
    curve = to_normalized(
        handles.out_handle, handles.in_handle, pair.frame_diff, pair.value_diff
    )
    return to_handles(curve, new_frame_diff, new_value_diff)


def curve_for_pair(pair: KeyframePair) -> NormalizedCurve | None:
    """Normalized easing of a pair: Bezier curve, identity for linear, None for step."""
    kinds = {pair.current.interpolation, pair.next.interpolation}
    if InterpolationKind.STEP in kinds or pair.frame_diff <= 0:
        return None

    if pair.is_bezier:
        handles = pair.handles
        return to_normalized(
            handles.out_handle, handles.in_handle, pair.frame_diff, pair.value_diff
        )

    return NormalizedCurve.identity()


def plan_retime(request: RetimingRequest) -> tuple[KeyframeWrite, ...]:
    """Compute the writes that move one attribute's keyframes and keep their easing."""
    keyframes = request.keyframes
    new_frames = retarget([keyframe.frame for keyframe in keyframes], request.ratio)

    out_handles: dict[int, BezierHandle] = {}
    in_handles: dict[int, BezierHandle] = {}

    for i, pair in enumerate(request.pairs):
        retimed = retime_curve(pair, new_frames[i + 1] - new_frames[i], pair.value_diff)
        if retimed is None:
            continue
        out_handles[i] = retimed.out_handle
        in_handles[i + 1] = retimed.in_handle

    writes = [
        KeyframeWrite(
            frame=keyframe.frame,
            new_frame=new_frames[i],
            value=keyframe.value,
            out_handle=out_handles.get(i),
            in_handle=in_handles.get(i),
        )
        for i, keyframe in enumerate(keyframes)
    ]

    return _order_for_application(writes)


def _order_for_application(writes: list[KeyframeWrite]) -> tuple[KeyframeWrite, ...]:
    """
    Order writes so each one lands on a free frame when applied one at a time.

    Keys moving earlier go first, front to back, then keys moving later, back
    to front. Keys that stay put only change handles and go last. Scaling
    around frame 0 moves negative keys the opposite way to positive ones, so
    the direction is taken per key.
    """
    earlier = [write for write in writes if write.new_frame < write.frame]
    later = [write for write in writes if write.new_frame > write.frame]
    unmoved = [write for write in writes if not write.moves]

    return tuple(earlier + later[::-1] + unmoved)
