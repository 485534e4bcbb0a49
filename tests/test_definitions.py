"""Tests for the record types in ``retimekit.definitions``."""

import pytest

from retimekit.definitions import (
    AttributePlan,
    AttributeRef,
    BezierHandle,
    InterpolationKind,
    Keyframe,
    KeyframePair,
    KeyframeWrite,
    NormalizedCurve,
    RetimingRequest,
)


class TestInterpolationKind:
    @pytest.mark.parametrize(
        "code,kind",
        [(0, InterpolationKind.BEZIER), (1, InterpolationKind.LINEAR), (2, InterpolationKind.STEP)],
    )
    def test_from_host(self, code, kind):
        assert InterpolationKind.from_host(code) is kind

    def test_unknown_code(self):
        with pytest.raises(ValueError, match="Unknown interpolation"):
            InterpolationKind.from_host(7)


class TestNormalizedCurve:
    def test_parse_plain(self):
        curve = NormalizedCurve.parse("0.25, 0.1, 0.25, 1")
        assert curve.as_tuple() == (0.25, 0.1, 0.25, 1.0)

    def test_parse_css(self):
        curve = NormalizedCurve.parse("cubic-bezier(0.68, -0.55, 0.265, 1.55)")
        assert curve == NormalizedCurve(0.68, -0.55, 0.265, 1.55)

    @pytest.mark.parametrize("text", ["0.1, 0.2, 0.3", "a, b, c, d", "cubic-bezier()", ""])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            NormalizedCurve.parse(text)

    def test_css_format(self):
        assert NormalizedCurve(0.25, 0.1, 0.25, 1).css == "cubic-bezier(0.250, 0.100, 0.250, 1.000)"

    def test_format_round_trips_through_parse(self):
        curve = NormalizedCurve(0.42, 0, 0.58, 1)
        assert NormalizedCurve.parse(curve.css) == curve


class TestKeyframePair:
    def test_spans(self):
        pair = KeyframePair(Keyframe(10, 2.0), Keyframe(34, -3.0))
        assert pair.frame_diff == 24
        assert pair.value_diff == -5.0
        assert not pair.is_degenerate

    def test_mixed_interpolation_is_not_bezier(self):
        pair = KeyframePair(
            Keyframe(0, 0.0), Keyframe(1, 1.0, interpolation=InterpolationKind.LINEAR)
        )
        assert not pair.is_bezier

    def test_handles_default_to_zero(self):
        pair = KeyframePair(Keyframe(0, 0.0, in_handle=BezierHandle(-1, 0)), Keyframe(1, 1.0))
        assert pair.handles.out_handle == BezierHandle.zero()
        assert pair.handles.in_handle == BezierHandle.zero()


class TestRetimingRequest:
    def test_pairs(self):
        keys = (Keyframe(0, 0.0), Keyframe(5, 1.0), Keyframe(9, 4.0))
        pairs = RetimingRequest(keys, 2.0).pairs
        assert [(p.current.frame, p.next.frame) for p in pairs] == [(0, 5), (5, 9)]

    def test_single_keyframe_has_no_pairs(self):
        assert RetimingRequest((Keyframe(0, 0.0),), 2.0).pairs == ()


class TestAttributePlan:
    def test_counts(self):
        plan = AttributePlan(
            AttributeRef("basicShape#1", "position.x"),
            (
                KeyframeWrite(0, 0, 0.0, out_handle=BezierHandle(1, 1)),
                KeyframeWrite(10, 20, 1.0, in_handle=BezierHandle(-1, -1)),
            ),
        )
        assert plan.moved_count == 1
        assert plan.curve_count == 1
        assert str(plan.attribute) == "basicShape#1.position.x"


class TestKeyframeWrite:
    def test_reverted_restores_original_handles(self):
        original = Keyframe(10, 1.0, out_handle=BezierHandle(2, 1), in_handle=BezierHandle(-2, 0))
        write = KeyframeWrite(10, 20, 1.0, out_handle=BezierHandle(4, 1))

        undo = write.reverted(original)

        assert (undo.frame, undo.new_frame) == (20, 10)
        assert undo.out_handle == BezierHandle(2, 1)
        assert undo.in_handle == BezierHandle(-2, 0)

    def test_reverted_without_original_leaves_handles(self):
        undo = KeyframeWrite(3, 1, 0.5).reverted()
        assert undo.out_handle is None and undo.in_handle is None
        assert undo.moves
