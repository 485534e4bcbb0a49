from typing import TypeAlias

Frame: TypeAlias = float
FrameIndex: TypeAlias = int
FrameRate: TypeAlias = float
Milliseconds: TypeAlias = int
CurveValues: TypeAlias = tuple[float, float, float, float]
PresetPayload: TypeAlias = dict[str, dict[str, float]]
