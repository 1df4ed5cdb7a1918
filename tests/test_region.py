"""Tests for Region geometry."""

import math

from watermark_eraser.models.region import Region, RegionType


def _box(x, y, w, h, confidence=0.5, kind=RegionType.TEXT) -> Region:
    return Region(x=x, y=y, width=w, height=h, confidence=confidence, type=kind)


def test_overlap_is_symmetric() -> None:
    boxes = [
        _box(0, 0, 10, 10),
        _box(5, 5, 10, 10),
        _box(20, 0, 5, 5),
        _box(10, 0, 4, 4),
        _box(-3, -3, 2, 2),
        _box(2, 2, 3, 3),
    ]
    for a in boxes:
        for b in boxes:
            assert a.overlaps(b) == b.overlaps(a)


def test_touching_edges_count_as_overlap() -> None:
    assert _box(0, 0, 10, 10).overlaps(_box(10, 0, 5, 5))
    assert _box(0, 0, 10, 10).overlaps(_box(0, 10, 5, 5))
    assert not _box(0, 0, 10, 10).overlaps(_box(11, 0, 5, 5))


def test_nested_boxes_overlap() -> None:
    assert _box(0, 0, 50, 50).overlaps(_box(10, 10, 5, 5))


def test_distance_to() -> None:
    a = _box(0, 0, 10, 10)
    assert a.distance_to(_box(5, 5, 10, 10)) == 0
    assert a.distance_to(_box(25, 0, 10, 10)) == 15
    assert math.isclose(a.distance_to(_box(13, 14, 2, 2)), 5.0)


def test_contains() -> None:
    outer = _box(0, 0, 20, 20)
    assert outer.contains(_box(0, 0, 20, 20))
    assert outer.contains(_box(5, 5, 3, 3))
    assert not outer.contains(_box(15, 15, 10, 10))


def test_clip_to_image() -> None:
    assert _box(-5, -5, 20, 20).clip(10, 8) == (0, 0, 10, 8)
    assert _box(50, 50, 5, 5).clip(10, 10) == (10, 10, 10, 10)


def test_to_dict_uses_type_value() -> None:
    data = _box(1, 2, 3, 4, confidence=0.123456, kind=RegionType.LOGO).to_dict()
    assert data == {"x": 1, "y": 2, "width": 3, "height": 4, "confidence": 0.1235, "type": "logo"}
