from __future__ import annotations

import re
from dataclasses import dataclass
from dataclasses import field
from enum import StrEnum
from enum import auto
from typing import Final

from retimekit.constants import EASING_DECIMALS
from retimekit.typehints import CurveValues
from retimekit.typehints import Frame
from retimekit.typehints import FrameIndex


_CUBIC_BEZIER_RE: Final[re.Pattern[str]] = re.compile(
    r"^\s*cubic-bezier\s*\((?P<body>[^)]*)\)\s*$", re.IGNORECASE
)


class InterpolationKind(StrEnum):
    """Keyframe interpolation modes."""

    BEZIER = auto()
    LINEAR = auto()
    STEP = auto()

    @classmethod
    def from_host(cls, code: int) -> InterpolationKind:
        """Map the host's integer interpolation code (0, 1, 2)."""
        match code:
            case 0:
                return cls.BEZIER
            case 1:
                return cls.LINEAR
            case 2:
                return cls.STEP
        raise ValueError(f"Unknown interpolation code: {code}")


@dataclass(slots=True, frozen=True)
class BezierHandle:
    """Tangent offset in (frame-delta, value-delta) units."""

    x: float
    y: float

    @classmethod
    def zero(cls) -> BezierHandle:
        return cls(0.0, 0.0)


@dataclass(slots=True, frozen=True)
class HandlePair:
    """Outgoing handle of the earlier keyframe and incoming handle of the later one."""

    out_handle: BezierHandle
    in_handle: BezierHandle


@dataclass(slots=True, frozen=True)
class Keyframe:
    """A point on an animated scalar timeline."""

    frame: Frame
    value: float
    out_handle: BezierHandle | None = None
    in_handle: BezierHandle | None = None
    interpolation: InterpolationKind = InterpolationKind.BEZIER


@dataclass(slots=True, frozen=True)
class KeyframePair:
    """Two temporally adjacent keyframes on one attribute."""

    current: Keyframe
    next: Keyframe

    @property
    def frame_diff(self) -> Frame:
        return self.next.frame - self.current.frame

    @property
    def value_diff(self) -> float:
        return self.next.value - self.current.value

    @property
    def is_bezier(self) -> bool:
        return (
            self.current.interpolation is InterpolationKind.BEZIER
            and self.next.interpolation is InterpolationKind.BEZIER
        )

    @property
    def is_degenerate(self) -> bool:
        return self.frame_diff == 0

    @property
    def handles(self) -> HandlePair:
        """Handles bounding this pair, missing ones read as zero offsets."""
        return HandlePair(
            out_handle=self.current.out_handle or BezierHandle.zero(),
            in_handle=self.next.in_handle or BezierHandle.zero(),
        )


@dataclass(slots=True, frozen=True)
class NormalizedCurve:
    """
    Scale-independent cubic-bezier easing parameters.

    x1 and x2 are time fractions, y1 and y2 value fractions. None of them is
    clamped: overshoot curves legitimately leave [0, 1].
    """

    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def identity(cls) -> NormalizedCurve:
        """The linear curve (0, 0, 1, 1)."""
        return cls(0.0, 0.0, 1.0, 1.0)

    @classmethod
    def from_values(cls, values: CurveValues) -> NormalizedCurve:
        x1, y1, x2, y2 = values
        return cls(float(x1), float(y1), float(x2), float(y2))

    @classmethod
    def parse(cls, text: str) -> NormalizedCurve:
        """Parse 'x1, y1, x2, y2' or 'cubic-bezier(x1, y1, x2, y2)'."""
        match = _CUBIC_BEZIER_RE.match(text)
        body = match.group("body") if match else text

        parts = [part.strip() for part in body.split(",")]
        if len(parts) != 4:
            raise ValueError(f"Expected 4 cubic-bezier values, got {len(parts)}: {text}")

        try:
            values = tuple(float(part) for part in parts)
        except ValueError:
            raise ValueError(f"Invalid cubic-bezier values: {text}")

        return cls.from_values(values)

    def as_tuple(self) -> CurveValues:
        return (self.x1, self.y1, self.x2, self.y2)

    def format(self, decimals: int = EASING_DECIMALS, separator: str = ", ") -> str:
        """Format the four parameters with fixed decimals."""
        return separator.join(f"{value:.{decimals}f}" for value in self.as_tuple())

    @property
    def css(self) -> str:
        return f"cubic-bezier({self.format()})"


@dataclass(slots=True, frozen=True)
class RetimingRequest:
    """Keyframes of one attribute and the target/source frame-rate ratio."""

    keyframes: tuple[Keyframe, ...]
    ratio: float

    @property
    def pairs(self) -> tuple[KeyframePair, ...]:
        return tuple(
            KeyframePair(current, following)
            for current, following in zip(self.keyframes, self.keyframes[1:])
        )


@dataclass(slots=True, frozen=True)
class AttributeRef:
    """One animated attribute of one layer."""

    layer: str
    attribute: str

    @property
    def path(self) -> str:
        return f"{self.layer}.{self.attribute}"

    def __str__(self) -> str:
        return self.path


@dataclass(slots=True, frozen=True)
class KeyframeWrite:
    """A single planned host write; handles are offsets relative to the keyframe."""

    frame: Frame
    new_frame: FrameIndex
    value: float
    out_handle: BezierHandle | None = None
    in_handle: BezierHandle | None = None

    @property
    def moves(self) -> bool:
        return self.new_frame != self.frame

    def reverted(self, original: Keyframe | None = None) -> KeyframeWrite:
        """The write that undoes this one, restoring the original handles when known."""
        return KeyframeWrite(
            frame=self.new_frame,
            new_frame=self.frame,
            value=self.value,
            out_handle=original.out_handle if original else None,
            in_handle=original.in_handle if original else None,
        )


@dataclass(slots=True, frozen=True)
class AttributePlan:
    """Ordered writes that retime one attribute, and the keyframes they were planned from."""

    attribute: AttributeRef
    writes: tuple[KeyframeWrite, ...] = field(default_factory=tuple)
    keyframes: tuple[Keyframe, ...] = field(default_factory=tuple)

    @property
    def moved_count(self) -> int:
        return sum(1 for write in self.writes if write.moves)

    @property
    def curve_count(self) -> int:
        return sum(1 for write in self.writes if write.out_handle is not None)
