"""
FrameRateConverter - frame-rate conversion of a whole composition.

Reads keyframe timelines through a CompositionHost, plans every attribute
with the pure retiming engine and writes the plans back, keeping visual
timing and easing intact. A failure on one attribute is recorded, the writes
already applied to it are undone, and the conversion carries on with the
next one.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.table import Table

from retimekit.console import console, warning
from retimekit.constants import (
    AUTO_ANIMATE_LAYER,
    DEFAULT_FPS,
    FRAME_BEHAVIOUR_LAYER,
    FRAME_MODE_FRAMES,
    MAX_FPS,
)
from retimekit.core import RetimeError, plan_retime, round_half_up
from retimekit.definitions import AttributePlan, AttributeRef, KeyframeWrite, RetimingRequest
from retimekit.host import CompositionHost, HostError
from retimekit.typehints import FrameRate


@dataclass(slots=True, frozen=True)
class ConversionFailure:
    """One target that could not be converted."""

    target: str
    message: str


@dataclass(slots=True, frozen=True)
class ConversionReport:
    """Outcome of a frame-rate conversion."""

    source_fps: FrameRate
    target_fps: FrameRate
    ratio: float
    plans: tuple[AttributePlan, ...] = field(default_factory=tuple)
    layers_processed: int = 0
    failures: tuple[ConversionFailure, ...] = field(default_factory=tuple)
    dry_run: bool = False

    @property
    def keyframes_moved(self) -> int:
        return sum(plan.moved_count for plan in self.plans)

    @property
    def curves_retimed(self) -> int:
        return sum(plan.curve_count for plan in self.plans)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


def validate_target_fps(fps: FrameRate) -> FrameRate:
    """Reject frame rates outside (0, MAX_FPS]."""
    if not 0 < fps <= MAX_FPS:
        raise ValueError(f"Invalid frame rate {fps}. Use a number between 1 and {MAX_FPS:g}.")
    return fps


class FrameRateConverter:
    """Converts a composition to a new frame rate through a host capability."""

    def __init__(self, host: CompositionHost) -> None:
        self._host = host
        self._failures: list[ConversionFailure] = []

    def _record_failure(self, target: str, exc: Exception) -> None:
        self._failures.append(ConversionFailure(target, str(exc)))
        warning(f"⚠️  {target}: {exc}")

    def _read_source_fps(self) -> FrameRate:
        """Current composition fps, falling back to the default when unreadable."""
        try:
            fps = self._host.get_fps()
        except HostError as e:
            warning(f"⚠️  Could not read frame rate ({e}), using {DEFAULT_FPS:g}")
            return DEFAULT_FPS

        if not fps or fps <= 0:
            warning(f"⚠️  Invalid frame rate {fps}, using {DEFAULT_FPS:g}")
            return DEFAULT_FPS
        return fps

    def _live_layers(self) -> list[str]:
        return [layer for layer in self._host.get_layers() if self._host.layer_exists(layer)]

    def build_plans(self, ratio: float) -> list[AttributePlan]:
        """Plan every animated attribute with at least two keyframes."""
        plans: list[AttributePlan] = []

        for layer in self._live_layers():
            try:
                attributes = self._host.get_animated_attributes(layer)
            except HostError as e:
                self._record_failure(layer, e)
                continue

            for attribute in attributes:
                ref = AttributeRef(layer, attribute)
                try:
                    keyframes = self._host.get_keyframes(ref)
                    if len(keyframes) < 2:
                        continue
                    writes = plan_retime(RetimingRequest(tuple(keyframes), ratio))
                except (RetimeError, HostError) as e:
                    self._record_failure(ref.path, e)
                    continue

                plans.append(AttributePlan(ref, writes, tuple(keyframes)))

        return plans

    def _convert_in_out(self, layer: str, ratio: float, comp_end: int) -> None:
        """Scale custom in/out points; layers spanning the whole comp are left alone."""
        in_out = self._host.get_in_out(layer)
        if in_out is None:
            return

        in_frame, out_frame = in_out
        if in_frame == 0 and out_frame == comp_end:
            return

        self._host.set_in_out(
            layer, round_half_up(in_frame * ratio), round_half_up(out_frame * ratio)
        )

    def _apply_plan(self, plan: AttributePlan) -> None:
        """Apply every write of a plan, or undo the ones already applied."""
        applied: list[KeyframeWrite] = []
        try:
            for write in plan.writes:
                self._host.apply_retimed_keyframe(plan.attribute, write)
                applied.append(write)
        except HostError as e:
            self._record_failure(plan.attribute.path, e)
            self._roll_back(plan, applied)

    def _roll_back(self, plan: AttributePlan, applied: list[KeyframeWrite]) -> None:
        """Undo applied writes in reverse order so every frame they return to is free."""
        if not applied:
            return

        originals = {keyframe.frame: keyframe for keyframe in plan.keyframes}
        try:
            for write in reversed(applied):
                self._host.apply_retimed_keyframe(
                    plan.attribute, write.reverted(originals.get(write.frame))
                )
        except HostError as e:
            self._record_failure(plan.attribute.path, e)
            return

        console.print(f"  Rolled back {len(applied)} write(s) on {plan.attribute.path}", style="dim")

    def _scale_setting(
        self, layer: str, name: str, animated: set[str], scale: float, rounded: bool = False
    ) -> None:
        """Multiply a static timing setting, leaving animated ones to their keyframes."""
        if name in animated:
            console.print(f"  Skipped {layer}.{name} (animated)", style="dim")
            return

        current = self._host.get_setting(layer, name)
        if current is None:
            return

        updated = current * scale
        if rounded:
            updated = round_half_up(updated)
        self._host.set_setting(layer, name, updated)
        console.print(f"  Adjusted {layer}.{name}: {current:g} → {updated:g}", style="dim")

    def _convert_behaviours(self, layers: list[str], ratio: float) -> None:
        """Adjust timing settings on auto-animate and frame behaviour layers."""
        for layer in layers:
            try:
                layer_type = self._host.get_layer_type(layer)
                if layer_type not in (AUTO_ANIMATE_LAYER, FRAME_BEHAVIOUR_LAYER):
                    continue

                animated = set(self._host.get_animated_attributes(layer))

                if layer_type == AUTO_ANIMATE_LAYER:
                    self._scale_setting(layer, "timeOffset", animated, ratio)
                    continue

                mode = self._host.get_setting(layer, "mode")
                if mode is not None and int(mode) != FRAME_MODE_FRAMES:
                    console.print(f"  Skipped {layer} (seconds mode)", style="dim")
                    continue

                self._scale_setting(layer, "value", animated, 1 / ratio)
                self._scale_setting(layer, "offset", animated, ratio)
                self._scale_setting(layer, "startFrame", animated, ratio, rounded=True)
            except HostError as e:
                self._record_failure(layer, e)

    def _convert_composition(self, target_fps: FrameRate, ratio: float) -> None:
        """Set the new fps and rescale comp range, playback range and playhead."""
        host = self._host

        try:
            start, end = host.get_frame_range()
            playback = host.get_playback_range()
            playhead = host.get_playhead()

            host.set_fps(target_fps)
            host.set_frame_range(round_half_up(start * ratio), round_half_up(end * ratio))
            if playback is not None:
                host.set_playback_range(
                    round_half_up(playback[0] * ratio), round_half_up(playback[1] * ratio)
                )
            host.set_playhead(round_half_up(playhead * ratio))
        except HostError as e:
            self._record_failure("composition", e)

    def _display_plans(self, plans: list[AttributePlan]) -> None:
        """Present planned keyframe moves in a formatted table."""
        table = Table(title="Planned Keyframe Changes")
        table.add_column("Attribute", style="bold")
        table.add_column("Keyframes", justify="right")
        table.add_column("Moved", justify="right")
        table.add_column("Curves", justify="right")

        for plan in plans:
            table.add_row(
                plan.attribute.path,
                str(len(plan.writes)),
                str(plan.moved_count),
                str(plan.curve_count),
            )

        console.print(table)

    def convert(self, target_fps: FrameRate, dry_run: bool = False) -> ConversionReport:
        """
        Convert the composition to target_fps.

        Keyframes, layer in/out points, behaviour timings, the comp range,
        the playback range and the playhead are all rescaled by
        target_fps / source_fps. With dry_run nothing is written.
        """
        validate_target_fps(target_fps)
        self._failures = []

        source_fps = self._read_source_fps()
        ratio = target_fps / source_fps
        console.print(
            f"🎞️  Converting {source_fps:g} fps → {target_fps:g} fps (ratio {ratio:.4f})",
            style="blue",
        )

        layers = self._live_layers()
        plans = self.build_plans(ratio)

        if dry_run:
            self._display_plans(plans)
            return ConversionReport(
                source_fps=source_fps,
                target_fps=target_fps,
                ratio=ratio,
                plans=tuple(plans),
                layers_processed=len(layers),
                failures=tuple(self._failures),
                dry_run=True,
            )

        try:
            comp_end = self._host.get_frame_range()[1]
        except HostError as e:
            self._record_failure("composition", e)
            comp_end = None

        if comp_end is not None:
            for layer in layers:
                try:
                    self._convert_in_out(layer, ratio, comp_end)
                except HostError as e:
                    self._record_failure(layer, e)

        for plan in plans:
            self._apply_plan(plan)

        self._convert_behaviours(layers, ratio)
        self._convert_composition(target_fps, ratio)

        report = ConversionReport(
            source_fps=source_fps,
            target_fps=target_fps,
            ratio=ratio,
            plans=tuple(plans),
            layers_processed=len(layers),
            failures=tuple(self._failures),
        )
        console.print(
            f"✅ {report.keyframes_moved} keyframes moved, {report.curves_retimed} curves retimed",
            style="green",
        )
        return report
