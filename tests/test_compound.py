"""Unit tests for constructive solid geometry.

Tests cover:
- The union, intersection and difference rules for every combination
  of hit side and inside flags
- Filtering a merged crossing list
- Intersecting CSG nodes, including a socket carved out of a cylinder
- Operand validation, solidity warnings and strict mode
- Bounds gating, divide delegation and predicate handling
"""

import logging

import pytest

from csgtrace.core.intersection import Intersection
from csgtrace.core.ray import Ray, point, vector
from csgtrace.core.transforms import scaling, translation
from csgtrace.geometry import BoundingBox, Cube, Cylinder, Plane, Primitive, ShapeKind, Sphere
from csgtrace.scene import CompoundOperation, CompoundShape, Group


class RecordingShape(Primitive):
    """A solid unit-box primitive that remembers whether it was asked to intersect."""

    def __init__(self, transform=translation(0, 0, 0)):
        super().__init__(transform)
        self.saved_ray = None

    def local_intersect(self, ray, predicate=None):
        self.saved_ray = ray
        return []

    def bounds(self):
        return BoundingBox((-1, -1, -1), (1, 1, 1))


def ts(intersections):
    return [x.t for x in intersections]


class TestOperationRules:
    """Tests for CompoundOperation.is_intersection_valid."""

    @pytest.mark.parametrize(
        "op, lhit, inl, inr, expected",
        [
            (CompoundOperation.UNION, True, True, True, False),
            (CompoundOperation.UNION, True, True, False, True),
            (CompoundOperation.UNION, True, False, True, False),
            (CompoundOperation.UNION, True, False, False, True),
            (CompoundOperation.UNION, False, True, True, False),
            (CompoundOperation.UNION, False, True, False, False),
            (CompoundOperation.UNION, False, False, True, True),
            (CompoundOperation.UNION, False, False, False, True),
            (CompoundOperation.INTERSECTION, True, True, True, True),
            (CompoundOperation.INTERSECTION, True, True, False, False),
            (CompoundOperation.INTERSECTION, True, False, True, True),
            (CompoundOperation.INTERSECTION, True, False, False, False),
            (CompoundOperation.INTERSECTION, False, True, True, True),
            (CompoundOperation.INTERSECTION, False, True, False, True),
            (CompoundOperation.INTERSECTION, False, False, True, False),
            (CompoundOperation.INTERSECTION, False, False, False, False),
            (CompoundOperation.DIFFERENCE, True, True, True, False),
            (CompoundOperation.DIFFERENCE, True, True, False, True),
            (CompoundOperation.DIFFERENCE, True, False, True, False),
            (CompoundOperation.DIFFERENCE, True, False, False, True),
            (CompoundOperation.DIFFERENCE, False, True, True, True),
            (CompoundOperation.DIFFERENCE, False, True, False, True),
            (CompoundOperation.DIFFERENCE, False, False, True, False),
            (CompoundOperation.DIFFERENCE, False, False, False, False),
        ],
    )
    def test_rule(self, op, lhit, inl, inr, expected):
        """Test one row of an operation's truth table."""
        assert op.is_intersection_valid(lhit, inl, inr) is expected

    def test_lookup_by_value(self):
        """Test that operations can be looked up by name."""
        assert CompoundOperation("difference") is CompoundOperation.DIFFERENCE


class TestFilter:
    """Tests for sweeping a merged crossing list."""

    @pytest.mark.parametrize(
        "op, kept",
        [
            (CompoundOperation.UNION, [0, 3]),
            (CompoundOperation.INTERSECTION, [1, 2]),
            (CompoundOperation.DIFFERENCE, [0, 1]),
        ],
    )
    def test_filter(self, op, kept):
        """Test which of four alternating crossings survive."""
        s1, s2 = Sphere(), Cube()
        node = CompoundShape(op, s1, s2)
        xs = [
            Intersection(1, s1),
            Intersection(2, s2),
            Intersection(3, s1),
            Intersection(4, s2),
        ]
        merged = [(x.t, x.shape is s2, x) for x in xs]
        result = node.filter(iter(merged))
        assert result == [xs[i] for i in kept]


class TestIntersect:
    """Tests for intersecting CSG nodes."""

    def test_ray_misses(self):
        """Test that a ray missing both operands gives nothing."""
        node = CompoundShape(CompoundOperation.UNION, Sphere(), Cube())
        assert node.intersect(Ray(point(0, 2, -5), vector(0, 0, 1))) == []

    def test_union(self):
        """Test that inner crossings of overlapping spheres are dropped."""
        s1 = Sphere()
        s2 = Sphere(translation(0, 0, 0.5))
        node = CompoundShape(CompoundOperation.UNION, s1, s2)
        xs = node.intersect(Ray(point(0, 0, -5), vector(0, 0, 1)))
        assert ts(xs) == pytest.approx([4.0, 6.5])
        assert [x.shape for x in xs] == [s1, s2]

    def test_intersection(self):
        """Test that only the shared lens survives."""
        s1 = Sphere()
        s2 = Sphere(translation(0, 0, 0.5))
        node = CompoundShape(CompoundOperation.INTERSECTION, s1, s2)
        xs = node.intersect(Ray(point(0, 0, -5), vector(0, 0, 1)))
        assert ts(xs) == pytest.approx([4.5, 6.0])
        assert [x.shape for x in xs] == [s2, s1]

    def test_difference(self):
        """Test carving the right sphere out of the left."""
        s1 = Sphere()
        s2 = Sphere(translation(0, 0, 0.5))
        node = CompoundShape(CompoundOperation.DIFFERENCE, s1, s2)
        xs = node.intersect(Ray(point(0, 0, -5), vector(0, 0, 1)))
        assert ts(xs) == pytest.approx([4.0, 4.5])
        assert [x.shape for x in xs] == [s1, s2]

    def test_difference_right_missed(self):
        """Test that the left operand is untouched where the right is absent."""
        s1 = Sphere()
        node = CompoundShape(CompoundOperation.DIFFERENCE, s1, Sphere(translation(5, 0, 0)))
        xs = node.intersect(Ray(point(0, 0, -5), vector(0, 0, 1)))
        assert ts(xs) == pytest.approx([4.0, 6.0])

    def test_socket_along_axis(self):
        """Test a sphere carved out of the top of a capped cylinder.

        Along the cylinder axis the bottom cap is kept, the sphere surface
        inside the cylinder is kept, and the top cap inside the sphere and
        the sphere surface outside the cylinder are dropped.
        """
        cyl = Cylinder(minimum=0, maximum=2, closed=True)
        ball = Sphere(translation(0, 2, 0))
        node = CompoundShape(CompoundOperation.DIFFERENCE, cyl, ball)
        xs = node.intersect(Ray(point(0, -5, 0), vector(0, 1, 0)))
        assert ts(xs) == pytest.approx([5.0, 6.0])
        assert [x.shape for x in xs] == [cyl, ball]

    def test_socket_across_axis(self):
        """Test a ray crossing the socket side to side."""
        cyl = Cylinder(minimum=0, maximum=2, closed=True)
        ball = Sphere(translation(0, 2, 0))
        node = CompoundShape(CompoundOperation.DIFFERENCE, cyl, ball)
        xs = node.intersect(Ray(point(-5, 1.5, 0), vector(1, 0, 0)))
        r = 0.75 ** 0.5
        assert ts(xs) == pytest.approx([4.0, 5.0 - r, 5.0 + r, 6.0])
        assert [x.shape for x in xs] == [cyl, ball, ball, cyl]

    def test_nested_in_group(self):
        """Test that a CSG node inside a transformed group is hit."""
        node = CompoundShape(CompoundOperation.UNION, Sphere(), Sphere(translation(0, 0, 0.5)))
        g = Group(translation(0, 0, 10), shapes=[node])
        xs = g.intersect(Ray(point(0, 0, 0), vector(0, 0, 1)))
        assert ts(xs) == pytest.approx([9.0, 11.5])

    def test_nested_compound(self):
        """Test a CSG node used as an operand of another."""
        inner = CompoundShape(CompoundOperation.UNION, Sphere(), Sphere(translation(0, 0, 1)))
        outer = CompoundShape(CompoundOperation.DIFFERENCE, inner, Cube(scaling(2, 2, 0.25)))
        xs = outer.intersect(Ray(point(0, 0, -5), vector(0, 0, 1)))
        assert ts(xs) == pytest.approx([4.0, 4.75, 5.25, 7.0])

    def test_operands_ignore_predicate(self):
        """Test that operands are intersected in full once the node is accepted."""
        node = CompoundShape(CompoundOperation.UNION, Sphere(), Sphere(translation(0, 0, 0.5)))
        g = Group(shapes=[node])
        only_containers = lambda s: s.kind is not ShapeKind.PRIMITIVE  # noqa: E731
        xs = g.intersect(Ray(point(0, 0, -5), vector(0, 0, 1)), only_containers)
        assert ts(xs) == pytest.approx([4.0, 6.5])


class TestStructure:
    """Tests for building CSG nodes."""

    def test_operands_become_children(self):
        """Test that both operands are parented to the node."""
        s1, s2 = Sphere(), Cube()
        node = CompoundShape(CompoundOperation.UNION, s1, s2)
        assert node.kind is ShapeKind.COMPOUND
        assert node.children == (s1, s2)
        assert s1.parent is node
        assert s2.parent is node
        assert node.contains(s1)

    def test_none_arguments_rejected(self):
        """Test that None operation or operands fail."""
        with pytest.raises(ValueError):
            CompoundShape(None, Sphere(), Cube())
        with pytest.raises(ValueError):
            CompoundShape(CompoundOperation.UNION, None, Cube())
        with pytest.raises(ValueError):
            CompoundShape(CompoundOperation.UNION, Sphere(), None)

    def test_same_operand_rejected(self):
        """Test that one shape cannot be both operands."""
        s = Sphere()
        with pytest.raises(ValueError):
            CompoundShape(CompoundOperation.UNION, s, s)

    def test_parented_operand_rolls_back(self):
        """Test that a failed build leaves the left operand unparented."""
        left = Sphere()
        right = Sphere()
        owner = Group(shapes=[right])
        with pytest.raises(ValueError):
            CompoundShape(CompoundOperation.UNION, left, right)
        assert left.parent is None
        assert right.parent is owner

    def test_bounds(self):
        """Test that the node box encloses both operands."""
        node = CompoundShape(CompoundOperation.UNION, Sphere(), Sphere(translation(3, 0, 0)))
        box = node.bounds()
        assert box.minimum == pytest.approx((-1.0, -1.0, -1.0))
        assert box.maximum == pytest.approx((4.0, 1.0, 1.0))

    def test_missed_box_skips_operands(self):
        """Test that operands are not tested when the node box is missed."""
        left, right = RecordingShape(), RecordingShape(translation(1, 0, 0))
        node = CompoundShape(CompoundOperation.UNION, left, right)
        node.intersect(Ray(point(0, 5, -5), vector(0, 0, 1)))
        assert left.saved_ray is None
        assert right.saved_ray is None
        node.intersect(Ray(point(0, 0, -5), vector(0, 0, 1)))
        assert left.saved_ray is not None
        assert right.saved_ray is not None

    def test_divide_reaches_operands(self, three_spheres):
        """Test that divide builds a BVH inside each operand."""
        left = Group(shapes=three_spheres)
        node = CompoundShape(CompoundOperation.UNION, left, Cube(translation(10, 0, 0)))
        assert node.divide(1) is node
        assert node.children[0] is left
        assert sum(1 for c in left.children if c.kind is ShapeKind.GROUP) == 2


class TestSolidity:
    """Tests for the solid-operand check."""

    def test_solid_operands_do_not_warn(self, caplog):
        """Test that spheres and capped cylinders pass silently."""
        with caplog.at_level(logging.WARNING, logger="csgtrace.scene.compound"):
            node = CompoundShape(
                CompoundOperation.DIFFERENCE,
                Cylinder(minimum=-1, maximum=1, closed=True),
                Sphere(),
            )
        assert node.is_solid()
        assert caplog.records == []

    def test_non_solid_operand_warns(self, caplog):
        """Test that a plane operand is reported."""
        with caplog.at_level(logging.WARNING, logger="csgtrace.scene.compound"):
            node = CompoundShape(CompoundOperation.UNION, Sphere(), Plane())
        assert not node.is_solid()
        assert any("non-solid" in r.getMessage() for r in caplog.records)

    def test_open_cylinder_is_not_solid(self, caplog):
        """Test that an uncapped cylinder is reported."""
        with caplog.at_level(logging.WARNING, logger="csgtrace.scene.compound"):
            CompoundShape(CompoundOperation.INTERSECTION, Cylinder(minimum=0, maximum=1), Sphere())
        assert len(caplog.records) == 1

    def test_strict_mode_raises(self):
        """Test that strict mode rejects non-solid operands and releases them."""
        left, right = Sphere(), Plane()
        with pytest.raises(ValueError):
            CompoundShape(CompoundOperation.UNION, left, right, strict=True)
        assert left.parent is None
        assert right.parent is None

    def test_group_of_solids_is_solid(self):
        """Test that a group of solids can be an operand in strict mode."""
        node = CompoundShape(
            CompoundOperation.UNION,
            Group(shapes=[Sphere(), Cube(translation(3, 0, 0))]),
            Sphere(translation(0, 3, 0)),
            strict=True,
        )
        assert node.is_solid()
