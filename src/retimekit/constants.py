from __future__ import annotations

from typing import Final


FLAT_VALUE_EPSILON: Final[float] = 0.001
DEFAULT_FPS: Final[float] = 25
MAX_FPS: Final[float] = 120
EASING_DECIMALS: Final[int] = 3
VELOCITY_EPSILON: Final[float] = 1e-4
DEFAULT_VELOCITY_SAMPLES: Final[int] = 50
MAX_PRESET_NAME_LENGTH: Final[int] = 30
PRESETS_PREFERENCE_KEY: Final[str] = "easey_presets"
PRESETS_ENV_VAR: Final[str] = "RETIMEKIT_PRESETS"
DEFAULT_PRESETS_FILE: Final[str] = "retimekit_presets.json"
AUTO_ANIMATE_LAYER: Final[str] = "autoAnimate"
FRAME_BEHAVIOUR_LAYER: Final[str] = "frame"
FRAME_MODE_FRAMES: Final[int] = 0
DEFAULT_PRESETS: Final[dict[str, tuple[float, float, float, float]]] = {
    "cubic-in": (0.55, 0.055, 0.675, 0.19),
    "cubic-out": (0.215, 0.61, 0.355, 1),
    "cubic-in-out": (0.645, 0.045, 0.355, 1),
    "quart-in": (0.895, 0.03, 0.685, 0.22),
    "quart-out": (0.165, 0.84, 0.44, 1),
    "quart-in-out": (0.77, 0, 0.175, 1),
    "quint-in": (0.755, 0.05, 0.855, 0.06),
    "quint-out": (0.23, 1, 0.32, 1),
    "quint-in-out": (0.86, 0, 0.07, 1),
    "expo-in": (0.95, 0.05, 0.795, 0.035),
}
