#!/usr/bin/env python3
"""
Retimekit CLI - frame-rate conversion and cubic-bezier easing tools.

- convert: retime a composition snapshot to a new frame rate
- inspect: list the easing curves of every keyframe pair in a snapshot
- curve: convert tangent handles to cubic-bezier and back
- presets: manage named easing curves
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Final

import click
from rich.table import Table

from retimekit.console import console, echo, error, err_console
from retimekit.constants import (
    DEFAULT_FPS,
    DEFAULT_PRESETS_FILE,
    MAX_FPS,
    PRESETS_ENV_VAR,
)
from retimekit.converter import FrameRateConverter, validate_target_fps
from retimekit.core import curve_for_pair, round_half_up, to_handles, to_normalized
from retimekit.definitions import (
    AttributeRef,
    BezierHandle,
    NormalizedCurve,
    RetimingRequest,
)
from retimekit.easing import (
    SpeedInfluence,
    curve_to_influence,
    describe_pair,
    frames_to_milliseconds,
    influence_to_curve,
    readable_property_name,
    sample_velocity,
)
from retimekit.presets import JsonPreferenceStore, PresetLibrary
from retimekit.host import CompositionHost
from retimekit.snapshot import load_snapshot, save_snapshot


# CLI Constants
SPEED_BLOCKS: Final[str] = "▁▂▃▄▅▆▇█"
SPEED_PROFILE_SAMPLES: Final[int] = 12


def handle_exception(verbose: bool, exc: Exception) -> None:
    """Handle exceptions with optional verbose traceback."""
    if verbose:
        err_console.print_exception(show_locals=True, width=300, max_frames=3)
        sys.exit(1)
    else:
        error(str(exc))


def validate_fps(ctx: click.Context, param: click.Parameter, value: float) -> float:
    """Validate frame rate is within the supported range."""
    try:
        return validate_target_fps(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def parse_curve(ctx: click.Context, param: click.Parameter, value: str | None) -> NormalizedCurve | None:
    """Parse cubic-bezier text."""
    if value is None:
        return None

    try:
        return NormalizedCurve.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


snapshot_argument = click.argument(
    "snapshot",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)

verbose_option = click.option(
    "--verbose", is_flag=True, help="Show full tracebacks on errors"
)

store_option = click.option(
    "--store",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=PRESETS_ENV_VAR,
    default=Path(DEFAULT_PRESETS_FILE),
    show_default=True,
    help=f"Preset preferences file (env: {PRESETS_ENV_VAR})",
)


def speed_profile(curve: NormalizedCurve) -> str:
    """Velocity of the curve as a block sparkline."""
    levels = len(SPEED_BLOCKS) - 1
    return "".join(
        SPEED_BLOCKS[round_half_up(speed * levels)]
        for speed in sample_velocity(curve, SPEED_PROFILE_SAMPLES)
    )


def easing_rows(
    host: CompositionHost, layers: list[str], frame_rate: float
) -> list[tuple[str, str, str, str, str, str]]:
    """One (attribute, property, frames, duration, easing, speed) row per keyframe pair."""
    rows = []
    for layer_id in layers:
        for attribute in host.get_animated_attributes(layer_id):
            ref = AttributeRef(layer_id, attribute)
            request = RetimingRequest(tuple(host.get_keyframes(ref)), 1.0)
            for pair in request.pairs:
                frames = f"{pair.current.frame:g} → {pair.next.frame:g}"
                curve = curve_for_pair(pair)

                if curve is None:
                    easing = "step" if pair.frame_diff else "degenerate"
                    rows.append(
                        (
                            ref.path,
                            readable_property_name(attribute),
                            frames,
                            f"{frames_to_milliseconds(pair.frame_diff, frame_rate)} ms",
                            easing,
                            "",
                        )
                    )
                    continue

                info = describe_pair(pair, frame_rate, attribute)
                rows.append(
                    (
                        ref.path,
                        info.property_name,
                        frames,
                        f"{info.duration_ms} ms",
                        curve.css if pair.is_bezier else "linear",
                        speed_profile(curve),
                    )
                )
    return rows


@click.group()
@click.version_option(package_name="retimekit")
def main():
    """Retimekit - keyframe retiming and cubic-bezier easing tools."""
    pass


@main.command()
@snapshot_argument
@click.option(
    "--fps",
    "target_fps",
    required=True,
    type=float,
    callback=validate_fps,
    help=f"Target frame rate (1-{MAX_FPS:g})",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the converted snapshot here instead of overwriting the input",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without making changes"
)
@verbose_option
def convert(
    snapshot: Path,
    target_fps: float,
    output: Path | None,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Convert a composition snapshot to a new frame rate, keeping timing and easing."""

    try:
        host = load_snapshot(snapshot)
        report = FrameRateConverter(host).convert(target_fps, dry_run=dry_run)

        if dry_run:
            echo("🔍 Dry run completed - no changes made", style="blue")
            return

        destination = output or snapshot
        save_snapshot(host, destination)

        echo(f"💾 Saved {destination}", style="green")
        if report.has_failures:
            echo(
                f"⚠️  {len(report.failures)} target(s) could not be converted",
                style="yellow",
            )
        echo("NOTE: Modifiers and procedural elements need manual adjustment.", style="dim")

    except Exception as exc:
        handle_exception(verbose, exc)


@main.command()
@snapshot_argument
@click.option("--layer", help="Only show this layer")
@verbose_option
def inspect(snapshot: Path, layer: str | None, verbose: bool) -> None:
    """List the easing curve of every keyframe pair in a snapshot."""

    try:
        host = load_snapshot(snapshot)
        frame_rate = host.get_fps() or DEFAULT_FPS
        layers = [layer] if layer else host.get_layers()

        table = Table(title=f"Easing: {snapshot.name} @ {frame_rate:g} fps")
        table.add_column("Attribute", style="bold")
        table.add_column("Property")
        table.add_column("Frames", justify="right")
        table.add_column("Duration", justify="right")
        table.add_column("Easing")
        table.add_column("Speed")

        for row in easing_rows(host, layers, frame_rate):
            table.add_row(*row)

        console.print(table)

    except Exception as exc:
        handle_exception(verbose, exc)


@main.command()
@click.option("--out", "out_handle", nargs=2, type=float, default=(0.0, 0.0), help="Outgoing handle offset (frames, value)")
@click.option("--in", "in_handle", nargs=2, type=float, default=(0.0, 0.0), help="Incoming handle offset (frames, value)")
@click.option("--frames", "frame_diff", required=True, type=float, help="Frame span of the pair")
@click.option("--values", "value_diff", required=True, type=float, help="Value span of the pair")
@click.option("--bezier", callback=parse_curve, help="Start from a cubic-bezier instead of handles")
@click.option("--influence", nargs=2, type=float, help="Start from speed-graph influence percentages (out, in)")
@click.option("--new-frames", type=float, help="Re-derive handles for this frame span")
@verbose_option
def curve(
    out_handle: tuple[float, float],
    in_handle: tuple[float, float],
    frame_diff: float,
    value_diff: float,
    bezier: NormalizedCurve | None,
    influence: tuple[float, float] | None,
    new_frames: float | None,
    verbose: bool,
) -> None:
    """Convert tangent handles to cubic-bezier, optionally retimed to a new span."""

    if bezier is not None and influence is not None:
        raise click.UsageError("Use either --bezier or --influence, not both")

    try:
        normalized = bezier
        if influence is not None:
            normalized = influence_to_curve(SpeedInfluence(*influence))
        elif normalized is None:
            normalized = to_normalized(
                BezierHandle(*out_handle), BezierHandle(*in_handle), frame_diff, value_diff
            )
        echo(normalized.css)

        span = new_frames if new_frames is not None else frame_diff
        handles = to_handles(normalized, span, value_diff)
        echo(
            f"out=({handles.out_handle.x:g}, {handles.out_handle.y:g}) "
            f"in=({handles.in_handle.x:g}, {handles.in_handle.y:g}) over {span:g} frames"
        )
        speed = curve_to_influence(normalized)
        echo(f"influence out={speed.out_influence:.1f}% in={speed.in_influence:.1f}%", style="dim")

    except Exception as exc:
        handle_exception(verbose, exc)


@main.group()
def presets():
    """Manage named easing presets."""
    pass


@presets.command("list")
@store_option
@verbose_option
def list_presets(store: Path, verbose: bool) -> None:
    """List presets alphabetically."""
    try:
        library = PresetLibrary.load(JsonPreferenceStore(store))

        table = Table(title="Easing Presets")
        table.add_column("Name", style="bold")
        table.add_column("Curve")
        for name in library.names():
            table.add_row(name, library.get(name).css)
        console.print(table)
    except Exception as exc:
        handle_exception(verbose, exc)


@presets.command("save")
@click.argument("name")
@click.argument("bezier", callback=parse_curve)
@store_option
@verbose_option
def save_preset(name: str, bezier: NormalizedCurve, store: Path, verbose: bool) -> None:
    """Save BEZIER ('x1, y1, x2, y2') under NAME."""
    try:
        preference_store = JsonPreferenceStore(store)
        library = PresetLibrary.load(preference_store)
        saved = library.save(name, bezier)
        library.save_to(preference_store)
        echo(f"✅ Saved preset '{saved}'", style="green")
    except Exception as exc:
        handle_exception(verbose, exc)


@presets.command("rename")
@click.argument("old_name")
@click.argument("new_name")
@store_option
@verbose_option
def rename_preset(old_name: str, new_name: str, store: Path, verbose: bool) -> None:
    """Rename preset OLD_NAME to NEW_NAME."""
    try:
        preference_store = JsonPreferenceStore(store)
        library = PresetLibrary.load(preference_store)
        renamed = library.rename(old_name, new_name)
        library.save_to(preference_store)
        echo(f"✏️  Renamed '{old_name}' to '{renamed}'", style="green")
    except Exception as exc:
        handle_exception(verbose, exc)


@presets.command("delete")
@click.argument("name", required=False)
@click.option("--all", "delete_all", is_flag=True, help="Delete every preset")
@store_option
@verbose_option
def delete_preset(name: str | None, delete_all: bool, store: Path, verbose: bool) -> None:
    """Delete preset NAME, or all presets."""
    try:
        preference_store = JsonPreferenceStore(store)
        library = PresetLibrary.load(preference_store)
        if delete_all:
            library.clear()
        elif name:
            library.delete(name)
        else:
            error("Give a preset name or --all")
        library.save_to(preference_store)
        echo("🗑️  Deleted", style="yellow")
    except Exception as exc:
        handle_exception(verbose, exc)


@presets.command("export")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), help="Write to a file instead of stdout")
@store_option
@verbose_option
def export_presets(output: Path | None, store: Path, verbose: bool) -> None:
    """Export presets as JSON."""
    try:
        library = PresetLibrary.load(JsonPreferenceStore(store))
        text = library.export_json()
        if output:
            output.write_text(text + "\n", encoding="utf-8")
            echo(f"💾 Exported {len(library)} presets to {output}", style="green")
        else:
            click.echo(text)
    except Exception as exc:
        handle_exception(verbose, exc)


@presets.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@store_option
@verbose_option
def import_presets(source: Path, store: Path, verbose: bool) -> None:
    """Merge presets from a JSON file, overwriting same-named ones."""
    try:
        preference_store = JsonPreferenceStore(store)
        library = PresetLibrary.load(preference_store)
        added = library.import_json(source.read_text(encoding="utf-8"))
        library.save_to(preference_store)
        echo(f"📥 Imported presets ({added} new, {len(library)} total)", style="green")
    except Exception as exc:
        handle_exception(verbose, exc)


if __name__ == "__main__":
    main()
