"""Unit tests for intersection records and hit selection."""

import pytest

from csgtrace.core.intersection import Intersection, hit, is_sorted, sort_intersections
from csgtrace.geometry import Sphere


@pytest.fixture
def sphere():
    return Sphere()


class TestIntersection:
    """Tests for the Intersection record."""

    def test_fields(self, sphere):
        """Test that an intersection keeps t and the shape."""
        x = Intersection(3.5, sphere)
        assert x.t == 3.5
        assert x.shape is sphere

    def test_immutable(self, sphere):
        """Test that intersections cannot be modified."""
        x = Intersection(1.0, sphere)
        with pytest.raises(AttributeError):
            x.t = 2.0

    def test_sort(self, sphere):
        """Test sorting ascending by t, keeping ties stable."""
        a, b, c, d = (Intersection(t, sphere) for t in (5.0, -3.0, 2.0, 2.0))
        result = sort_intersections([a, b, c, d])
        assert [x.t for x in result] == [-3.0, 2.0, 2.0, 5.0]
        assert result[1] is c
        assert result[2] is d
        assert is_sorted(result)
        assert not is_sorted([a, b])


class TestHit:
    """Tests for nearest non-negative hit selection."""

    def test_all_positive(self, sphere):
        """Test that the smallest t wins."""
        i1, i2 = Intersection(1, sphere), Intersection(2, sphere)
        assert hit([i2, i1]) is i1

    def test_some_negative(self, sphere):
        """Test that crossings behind the origin are skipped."""
        i1, i2 = Intersection(-1, sphere), Intersection(1, sphere)
        assert hit([i2, i1]) is i2

    def test_all_negative(self, sphere):
        """Test that no hit is reported when everything is behind."""
        assert hit([Intersection(-2, sphere), Intersection(-1, sphere)]) is None

    def test_zero_counts(self, sphere):
        """Test that t == 0 is a valid hit."""
        x = Intersection(0.0, sphere)
        assert hit([Intersection(-0.5, sphere), x]) is x

    def test_unsorted_input(self, sphere):
        """Test that the lowest non-negative t is chosen from any order."""
        xs = [Intersection(t, sphere) for t in (5, 7, -3, 2)]
        assert hit(xs) is xs[3]

    def test_empty(self):
        """Test that an empty list has no hit."""
        assert hit([]) is None
