from __future__ import annotations

from typing import Protocol

from retimekit.definitions import AttributeRef
from retimekit.definitions import Keyframe
from retimekit.definitions import KeyframeWrite
from retimekit.typehints import FrameIndex
from retimekit.typehints import FrameRate


class HostError(Exception):
    """A host call failed."""


class CompositionHost(Protocol):
    """Capabilities the converter needs from the active composition."""

    def get_fps(self) -> FrameRate | None: ...

    def set_fps(self, fps: FrameRate) -> None: ...

    def get_frame_range(self) -> tuple[FrameIndex, FrameIndex]: ...

    def set_frame_range(self, start: FrameIndex, end: FrameIndex) -> None: ...

    def get_playback_range(self) -> tuple[FrameIndex, FrameIndex] | None: ...

    def set_playback_range(self, start: FrameIndex, end: FrameIndex) -> None: ...

    def get_playhead(self) -> FrameIndex: ...

    def set_playhead(self, frame: FrameIndex) -> None: ...

    def get_layers(self) -> list[str]: ...

    def layer_exists(self, layer: str) -> bool: ...

    def get_layer_type(self, layer: str) -> str: ...

    def get_in_out(self, layer: str) -> tuple[FrameIndex, FrameIndex] | None: ...

    def set_in_out(self, layer: str, in_frame: FrameIndex, out_frame: FrameIndex) -> None: ...

    def get_animated_attributes(self, layer: str) -> list[str]: ...

    def get_keyframes(self, ref: AttributeRef) -> list[Keyframe]:
        """Ordered keyframe timeline of one attribute."""
        ...

    def apply_retimed_keyframe(self, ref: AttributeRef, write: KeyframeWrite) -> None:
        """Move one keyframe and set whichever handles the write carries."""
        ...

    def get_setting(self, layer: str, name: str) -> float | None: ...

    def set_setting(self, layer: str, name: str, value: float) -> None: ...
