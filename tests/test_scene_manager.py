"""Unit tests for the SceneManager.

Tests cover:
- SceneConfig validation and dictionary round trips
- Adding, removing and clearing shapes
- CSG nodes created with the configured strictness
- Building the BVH and the read-only stage that follows
- Ray queries against a built scene
"""

import logging

import pytest

from csgtrace.core.ray import Ray, point, vector
from csgtrace.core.transforms import translation
from csgtrace.geometry import Plane, ShapeKind, Sphere
from csgtrace.scene import CompoundOperation, SceneConfig, SceneManager


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    scene = SceneManager(SceneConfig(divide_threshold=1))
    yield scene
    scene.clear()


class TestSceneConfig:
    """Tests for the configuration dataclass."""

    def test_defaults(self):
        """Test the default settings."""
        config = SceneConfig()
        assert config.divide_threshold == 4
        assert config.precompute_bounds is True
        assert config.strict_csg is False

    def test_negative_threshold_rejected(self):
        """Test that a negative threshold fails."""
        with pytest.raises(ValueError):
            SceneConfig(divide_threshold=-1)

    def test_round_trip(self):
        """Test converting to and from a dictionary."""
        config = SceneConfig(divide_threshold=8, precompute_bounds=False, strict_csg=True)
        data = config.to_dict()
        assert data == {"divide_threshold": 8, "precompute_bounds": False, "strict_csg": True}
        assert SceneConfig.from_dict(data) == config

    def test_from_dict_ignores_unknown_keys(self):
        """Test that extra keys are dropped."""
        config = SceneConfig.from_dict({"divide_threshold": 2, "samples": 64})
        assert config.divide_threshold == 2


class TestAssembly:
    """Tests for building up a scene."""

    def test_add_shape(self, fresh_scene):
        """Test adding shapes under the root."""
        s = Sphere()
        fresh_scene.add_shape(s)
        assert fresh_scene.shape_count() == 1
        assert s.parent is fresh_scene.root

    def test_remove_shape(self, fresh_scene):
        """Test removing a top-level shape."""
        s = Sphere()
        fresh_scene.add_shape(s)
        assert fresh_scene.remove_shape(s) is True
        assert fresh_scene.shape_count() == 0

    def test_add_compound(self, fresh_scene):
        """Test creating a CSG node in the scene."""
        node = fresh_scene.add_compound(CompoundOperation.UNION, Sphere(), Sphere(translation(0, 0, 0.5)))
        assert node.kind is ShapeKind.COMPOUND
        assert node.parent is fresh_scene.root

    def test_add_compound_strict(self):
        """Test that strict configuration rejects non-solid operands."""
        scene = SceneManager(SceneConfig(strict_csg=True))
        with pytest.raises(ValueError):
            scene.add_compound(CompoundOperation.UNION, Sphere(), Plane())
        assert scene.shape_count() == 0

    def test_clear(self, fresh_scene):
        """Test that clear empties the root and unparents shapes."""
        s = Sphere()
        fresh_scene.add_shape(s)
        fresh_scene.build()
        fresh_scene.clear()
        assert fresh_scene.shape_count() == 0
        assert s.parent is None
        assert not fresh_scene.is_built
        fresh_scene.add_shape(Sphere())


class TestBuild:
    """Tests for the build stage."""

    def test_build_divides_root(self, fresh_scene, three_spheres):
        """Test that build constructs the BVH with the configured threshold."""
        for s in three_spheres:
            fresh_scene.add_shape(s)
        root = fresh_scene.build()
        assert root is fresh_scene.root
        assert fresh_scene.is_built
        assert root.children[0] is three_spheres[2]
        assert [c.kind for c in root.children[1:]] == [ShapeKind.GROUP, ShapeKind.GROUP]

    def test_build_precomputes_bounds(self, fresh_scene, three_spheres):
        """Test that every cached box is filled in."""
        for s in three_spheres:
            fresh_scene.add_shape(s)
        root = fresh_scene.build()
        assert root._bounds is not None
        assert all(c._bounds is not None for c in root.children[1:])

    def test_build_twice(self, fresh_scene):
        """Test that a second build is a no-op."""
        fresh_scene.add_shape(Sphere())
        assert fresh_scene.build() is fresh_scene.build()

    def test_build_logs(self, fresh_scene, caplog):
        """Test that build reports the scene size."""
        fresh_scene.add_shape(Sphere())
        with caplog.at_level(logging.INFO, logger="csgtrace.scene.manager"):
            fresh_scene.build()
        assert "Built scene" in caplog.text

    def test_built_scene_is_read_only(self, fresh_scene):
        """Test that assembly methods fail after build."""
        s = Sphere()
        fresh_scene.add_shape(s)
        fresh_scene.build()
        with pytest.raises(RuntimeError):
            fresh_scene.add_shape(Sphere())
        with pytest.raises(RuntimeError):
            fresh_scene.remove_shape(s)
        with pytest.raises(RuntimeError):
            fresh_scene.add_compound(CompoundOperation.UNION, Sphere(), Sphere())


class TestQueries:
    """Tests for ray queries."""

    def test_hit(self, fresh_scene, three_spheres):
        """Test the nearest visible crossing."""
        for s in three_spheres:
            fresh_scene.add_shape(s)
        fresh_scene.build()
        x = fresh_scene.hit(Ray(point(-5, 0, 0), vector(1, 0, 0)))
        assert x.t == pytest.approx(2.0)
        assert x.shape is three_spheres[0]

    def test_hit_from_inside(self, fresh_scene):
        """Test that crossings behind the origin are skipped."""
        s = Sphere()
        fresh_scene.add_shape(s)
        x = fresh_scene.hit(Ray(point(0, 0, 0), vector(0, 0, 1)))
        assert x.t == pytest.approx(1.0)

    def test_miss(self, fresh_scene):
        """Test that a ray missing everything has no hit."""
        fresh_scene.add_shape(Sphere())
        fresh_scene.build()
        assert fresh_scene.hit(Ray(point(0, 5, -5), vector(0, 0, 1))) is None

    def test_intersect_with_predicate(self, fresh_scene, three_spheres):
        """Test that a predicate narrows the query."""
        for s in three_spheres:
            fresh_scene.add_shape(s)
        fresh_scene.build()
        middle = three_spheres[2]
        xs = fresh_scene.intersect(
            Ray(point(-5, 0, 0), vector(1, 0, 0)),
            lambda s: s.kind is not ShapeKind.PRIMITIVE or s is middle,
        )
        assert [x.t for x in xs] == pytest.approx([4.0, 6.0])
