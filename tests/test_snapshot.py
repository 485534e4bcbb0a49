"""Tests for the JSON snapshot host in ``retimekit.snapshot``."""

import json

import pytest

from retimekit.definitions import (
    AttributeRef,
    BezierHandle,
    InterpolationKind,
    KeyframeWrite,
)
from retimekit.host import HostError
from retimekit.snapshot import SnapshotError, SnapshotHost, load_snapshot, save_snapshot


POSITION = AttributeRef("basicShape#1", "position.x")


class TestParsing:
    def test_reads_composition(self, composition_data):
        host = SnapshotHost.from_dict(composition_data)

        assert host.get_fps() == 25
        assert host.get_frame_range() == (0, 100)
        assert host.get_playback_range() == (0, 100)
        assert host.get_playhead() == 13
        assert host.get_layers() == ["basicShape#1", "basicShape#2", "autoAnimate#1", "frame#1"]
        assert host.get_layer_type("frame#1") == "frame"
        assert host.get_in_out("basicShape#2") == (10, 50)
        assert host.get_in_out("autoAnimate#1") is None

    def test_keyframes(self, composition_data):
        host = SnapshotHost.from_dict(composition_data)
        first, second = host.get_keyframes(POSITION)

        assert first.out_handle == BezierHandle(10, 5)
        assert first.in_handle is None
        assert second.in_handle == BezierHandle(-8, -10)
        assert first.interpolation is InterpolationKind.BEZIER

    def test_keyframes_are_sorted(self, composition_data):
        composition_data["layers"][0]["attributes"]["position.x"].reverse()
        host = SnapshotHost.from_dict(composition_data)
        assert [k.frame for k in host.get_keyframes(POSITION)] == [0, 25]

    def test_host_codes_and_dict_handles(self):
        host = SnapshotHost.from_dict(
            {
                "end_frame": 10,
                "layers": [
                    {
                        "id": "l",
                        "attributes": {
                            "y": [
                                {"frame": 0, "value": 0, "interpolation": 2},
                                {"frame": 5, "value": 1, "interpolation": "LINEAR", "in_handle": {"x": -1, "y": 0}},
                            ]
                        },
                    }
                ],
            }
        )
        first, second = host.get_keyframes(AttributeRef("l", "y"))

        assert first.interpolation is InterpolationKind.STEP
        assert second.interpolation is InterpolationKind.LINEAR
        assert second.in_handle == BezierHandle(-1, 0)
        assert host.get_fps() is None

    @pytest.mark.parametrize(
        "data",
        [
            {"layers": []},
            {"end_frame": 10, "layers": [{"type": "x"}]},
            {"end_frame": 10, "layers": [{"id": "l", "attributes": {"y": [{"value": 1}]}}]},
            {"end_frame": 10, "layers": [{"id": "l", "attributes": {"y": [{"frame": 0, "value": 1, "interpolation": 9}]}}]},
        ],
    )
    def test_malformed(self, data):
        with pytest.raises(SnapshotError):
            SnapshotHost.from_dict(data)


class TestWrites:
    def test_move_and_retime(self, composition_data):
        host = SnapshotHost.from_dict(composition_data)
        host.apply_retimed_keyframe(
            POSITION, KeyframeWrite(25, 50, 100.0, in_handle=BezierHandle(-16, -10))
        )

        keys = host.get_keyframes(POSITION)
        assert [k.frame for k in keys] == [0, 50]
        assert keys[1].in_handle == BezierHandle(-16, -10)
        assert keys[1].value == 100

    def test_missing_handles_keep_existing(self, composition_data):
        host = SnapshotHost.from_dict(composition_data)
        host.apply_retimed_keyframe(POSITION, KeyframeWrite(0, 0, 0.0))
        assert host.get_keyframes(POSITION)[0].out_handle == BezierHandle(10, 5)

    def test_occupied_frame_raises(self, composition_data):
        host = SnapshotHost.from_dict(composition_data)
        with pytest.raises(HostError, match="occupied"):
            host.apply_retimed_keyframe(POSITION, KeyframeWrite(0, 25, 0.0))

    def test_missing_keyframe_raises(self, composition_data):
        host = SnapshotHost.from_dict(composition_data)
        with pytest.raises(HostError, match="No keyframe"):
            host.apply_retimed_keyframe(POSITION, KeyframeWrite(7, 14, 0.0))

    def test_unknown_layer_and_attribute(self, composition_data):
        host = SnapshotHost.from_dict(composition_data)
        with pytest.raises(HostError):
            host.get_layer_type("nope")
        with pytest.raises(HostError):
            host.get_keyframes(AttributeRef("basicShape#1", "scale"))
        assert not host.layer_exists("nope")


class TestFiles:
    def test_save_and_load(self, composition_data, tmp_path):
        path = tmp_path / "comp.json"
        host = SnapshotHost.from_dict(composition_data)
        host.set_fps(50)
        host.set_setting("autoAnimate#1", "timeOffset", 8)
        save_snapshot(host, path)

        reloaded = load_snapshot(path)
        assert reloaded.get_fps() == 50
        assert reloaded.get_setting("autoAnimate#1", "timeOffset") == 8
        assert reloaded.get_keyframes(POSITION) == host.get_keyframes(POSITION)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(SnapshotError, match="not valid JSON"):
            load_snapshot(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps([1, 2]), encoding="utf-8")
        with pytest.raises(SnapshotError):
            load_snapshot(path)
