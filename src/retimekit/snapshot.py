"""
SnapshotHost - an in-memory composition backed by a JSON snapshot.

Lets the converter run outside the host application: a composition is
exported to JSON, converted here, and the result written back out.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from retimekit.definitions import (
    AttributeRef,
    BezierHandle,
    InterpolationKind,
    Keyframe,
    KeyframeWrite,
)
from retimekit.host import HostError
from retimekit.typehints import FrameIndex, FrameRate


class SnapshotError(Exception):
    """Snapshot document is malformed."""


@dataclass(slots=True)
class SnapshotLayer:
    """Mutable layer state inside a snapshot."""

    id: str
    type: str = "layer"
    in_frame: FrameIndex | None = None
    out_frame: FrameIndex | None = None
    settings: dict[str, float] = field(default_factory=dict)
    attributes: dict[str, list[Keyframe]] = field(default_factory=dict)


def _parse_handle(raw: Any) -> BezierHandle | None:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return BezierHandle(float(raw["x"]), float(raw["y"]))
    x, y = raw
    return BezierHandle(float(x), float(y))


def _parse_interpolation(raw: Any) -> InterpolationKind:
    if raw is None:
        return InterpolationKind.BEZIER
    if isinstance(raw, int):
        return InterpolationKind.from_host(raw)
    return InterpolationKind(str(raw).lower())


def _parse_keyframe(raw: dict[str, Any]) -> Keyframe:
    return Keyframe(
        frame=raw["frame"],
        value=float(raw["value"]),
        out_handle=_parse_handle(raw.get("out_handle")),
        in_handle=_parse_handle(raw.get("in_handle")),
        interpolation=_parse_interpolation(raw.get("interpolation")),
    )


def _dump_keyframe(keyframe: Keyframe) -> dict[str, Any]:
    data: dict[str, Any] = {
        "frame": keyframe.frame,
        "value": keyframe.value,
        "interpolation": keyframe.interpolation.value,
    }
    if keyframe.out_handle is not None:
        data["out_handle"] = [keyframe.out_handle.x, keyframe.out_handle.y]
    if keyframe.in_handle is not None:
        data["in_handle"] = [keyframe.in_handle.x, keyframe.in_handle.y]
    return data


class SnapshotHost:
    """CompositionHost implementation over plain snapshot data."""

    def __init__(
        self,
        fps: FrameRate | None,
        start_frame: FrameIndex,
        end_frame: FrameIndex,
        layers: list[SnapshotLayer],
        playback: tuple[FrameIndex, FrameIndex] | None = None,
        playhead: FrameIndex = 0,
    ) -> None:
        self.fps = fps
        self.start_frame = start_frame
        self.end_frame = end_frame
        self.playback = playback
        self.playhead = playhead
        self._layers: dict[str, SnapshotLayer] = {layer.id: layer for layer in layers}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnapshotHost:
        """Build a host from a parsed snapshot document."""
        try:
            layers = []
            for raw_layer in data.get("layers", []):
                attributes = {
                    name: sorted(
                        (_parse_keyframe(raw) for raw in raw_keys), key=lambda k: k.frame
                    )
                    for name, raw_keys in raw_layer.get("attributes", {}).items()
                }
                layers.append(
                    SnapshotLayer(
                        id=raw_layer["id"],
                        type=raw_layer.get("type", "layer"),
                        in_frame=raw_layer.get("in_frame"),
                        out_frame=raw_layer.get("out_frame"),
                        settings={k: float(v) for k, v in raw_layer.get("settings", {}).items()},
                        attributes=attributes,
                    )
                )

            playback = data.get("playback")
            return cls(
                fps=data.get("fps"),
                start_frame=int(data.get("start_frame", 0)),
                end_frame=int(data["end_frame"]),
                layers=layers,
                playback=tuple(playback) if playback is not None else None,
                playhead=int(data.get("playhead", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SnapshotError(f"Malformed snapshot: {e!r}") from e

    def to_dict(self) -> dict[str, Any]:
        """Serialize the current state back to a snapshot document."""
        layers = []
        for layer in self._layers.values():
            raw_layer: dict[str, Any] = {"id": layer.id, "type": layer.type}
            if layer.in_frame is not None:
                raw_layer["in_frame"] = layer.in_frame
            if layer.out_frame is not None:
                raw_layer["out_frame"] = layer.out_frame
            if layer.settings:
                raw_layer["settings"] = dict(layer.settings)
            raw_layer["attributes"] = {
                name: [_dump_keyframe(keyframe) for keyframe in keyframes]
                for name, keyframes in layer.attributes.items()
            }
            layers.append(raw_layer)

        data: dict[str, Any] = {
            "fps": self.fps,
            "start_frame": self.start_frame,
            "end_frame": self.end_frame,
            "playhead": self.playhead,
            "layers": layers,
        }
        if self.playback is not None:
            data["playback"] = list(self.playback)
        return data

    def _layer(self, layer: str) -> SnapshotLayer:
        try:
            return self._layers[layer]
        except KeyError:
            raise HostError(f"Unknown layer: {layer}")

    def _keyframes(self, ref: AttributeRef) -> list[Keyframe]:
        try:
            return self._layer(ref.layer).attributes[ref.attribute]
        except KeyError:
            raise HostError(f"Attribute is not animated: {ref.path}")

    def get_fps(self) -> FrameRate | None:
        return self.fps

    def set_fps(self, fps: FrameRate) -> None:
        self.fps = fps

    def get_frame_range(self) -> tuple[FrameIndex, FrameIndex]:
        return self.start_frame, self.end_frame

    def set_frame_range(self, start: FrameIndex, end: FrameIndex) -> None:
        self.start_frame, self.end_frame = start, end

    def get_playback_range(self) -> tuple[FrameIndex, FrameIndex] | None:
        return self.playback

    def set_playback_range(self, start: FrameIndex, end: FrameIndex) -> None:
        self.playback = (start, end)

    def get_playhead(self) -> FrameIndex:
        return self.playhead

    def set_playhead(self, frame: FrameIndex) -> None:
        self.playhead = frame

    def get_layers(self) -> list[str]:
        return list(self._layers)

    def layer_exists(self, layer: str) -> bool:
        return layer in self._layers

    def get_layer_type(self, layer: str) -> str:
        return self._layer(layer).type

    def get_in_out(self, layer: str) -> tuple[FrameIndex, FrameIndex] | None:
        snapshot_layer = self._layer(layer)
        if snapshot_layer.in_frame is None or snapshot_layer.out_frame is None:
            return None
        return snapshot_layer.in_frame, snapshot_layer.out_frame

    def set_in_out(self, layer: str, in_frame: FrameIndex, out_frame: FrameIndex) -> None:
        snapshot_layer = self._layer(layer)
        snapshot_layer.in_frame = in_frame
        snapshot_layer.out_frame = out_frame

    def get_animated_attributes(self, layer: str) -> list[str]:
        return [name for name, keys in self._layer(layer).attributes.items() if keys]

    def get_keyframes(self, ref: AttributeRef) -> list[Keyframe]:
        return list(self._keyframes(ref))

    def apply_retimed_keyframe(self, ref: AttributeRef, write: KeyframeWrite) -> None:
        keyframes = self._keyframes(ref)

        index = next((i for i, k in enumerate(keyframes) if k.frame == write.frame), None)
        if index is None:
            raise HostError(f"No keyframe at frame {write.frame} on {ref.path}")

        if write.moves and any(k.frame == write.new_frame for k in keyframes):
            raise HostError(f"Frame {write.new_frame} on {ref.path} is already occupied")

        current = keyframes[index]
        keyframes[index] = Keyframe(
            frame=write.new_frame,
            value=current.value,
            out_handle=write.out_handle if write.out_handle is not None else current.out_handle,
            in_handle=write.in_handle if write.in_handle is not None else current.in_handle,
            interpolation=current.interpolation,
        )
        keyframes.sort(key=lambda k: k.frame)

    def get_setting(self, layer: str, name: str) -> float | None:
        return self._layer(layer).settings.get(name)

    def set_setting(self, layer: str, name: str, value: float) -> None:
        self._layer(layer).settings[name] = value


def load_snapshot(path: Path) -> SnapshotHost:
    """Read a snapshot JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SnapshotError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError(f"{path} does not contain a snapshot object")
    return SnapshotHost.from_dict(data)


def save_snapshot(host: SnapshotHost, path: Path) -> None:
    """Write a snapshot JSON file."""
    path.write_text(json.dumps(host.to_dict(), indent=2) + "\n", encoding="utf-8")
