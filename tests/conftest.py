from typing import Any

import pytest


@pytest.fixture()
def composition_data() -> dict[str, Any]:
    """A 25 fps composition with keyframed, behaviour and trimmed layers."""
    return {
        "fps": 25,
        "start_frame": 0,
        "end_frame": 100,
        "playback": [0, 100],
        "playhead": 13,
        "layers": [
            {
                "id": "basicShape#1",
                "type": "basicShape",
                "in_frame": 0,
                "out_frame": 100,
                "attributes": {
                    "position.x": [
                        {"frame": 0, "value": 0, "out_handle": [10, 5]},
                        {"frame": 25, "value": 100, "in_handle": [-8, -10]},
                    ],
                },
            },
            {
                "id": "basicShape#2",
                "type": "basicShape",
                "in_frame": 10,
                "out_frame": 50,
                "attributes": {
                    "opacity": [
                        {"frame": 0, "value": 0, "interpolation": "linear"},
                        {"frame": 10, "value": 1, "interpolation": "linear"},
                    ],
                },
            },
            {
                "id": "autoAnimate#1",
                "type": "autoAnimate",
                "settings": {"timeOffset": 4},
            },
            {
                "id": "frame#1",
                "type": "frame",
                "settings": {"value": 10, "offset": 3, "startFrame": 5, "mode": 0},
            },
        ],
    }
