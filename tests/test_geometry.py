import pytest

from liveness_guide.models.geometry import Rect, contains

OUTSIDE = Rect(0, 0, 325, 325)


@pytest.mark.parametrize("rect", [
    Rect(0, 0, 325, 325),
    Rect(-10, 5, 0, 0),
    Rect(12.5, 40.25, 100.75, 3.5),
])
def test_contains_is_reflexive(rect):
    assert contains(rect, rect) is True


def test_nested_rect_is_contained():
    assert contains(OUTSIDE, Rect(10, 10, 300, 300)) is True


@pytest.mark.parametrize("inside", [
    Rect(-0.01, 0, 100, 100),      # past the left edge
    Rect(0, -0.01, 100, 100),      # past the top edge
    Rect(225.01, 0, 100, 100),     # past the right edge
    Rect(0, 225.01, 100, 100),     # past the bottom edge
])
def test_shift_beyond_any_edge_is_not_contained(inside):
    assert contains(OUTSIDE, inside) is False


def test_touching_edges_is_contained():
    assert contains(OUTSIDE, Rect(225, 225, 100, 100)) is True


def test_malformed_rect_is_not_special_cased():
    # Negative size only shifts the far edge left/up, so this still fits
    assert contains(OUTSIDE, Rect(10, 10, -5, -5)) is True
    assert Rect(10, 10, -5, -5).is_well_formed() is False


def test_shrink_keeps_origin():
    """The inset is taken from width and height only."""
    shrunk = Rect(10, 20, 300, 300).shrink(50)
    assert shrunk == Rect(10, 20, 250, 250)


def test_inset_face_fits_preview():
    # Arrange
    preview = Rect(0, 0, 325, 325)
    small_face = Rect(0, 0, 300, 300)
    large_face = Rect(70, 70, 310, 310)

    # Act / Assert
    assert contains(preview, small_face.shrink(50)) is True
    assert contains(preview, large_face.shrink(50)) is False
