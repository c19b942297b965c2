import math

import pytest

from springmass.models import Plane, Point, Sphere, Spring, SpringKind, Vector3


class TestVector3:
    def test_arithmetic(self):
        a = Vector3(1, 2, 3)
        b = Vector3(4, 5, 6)
        assert a + b == Vector3(5, 7, 9)
        assert b - a == Vector3(3, 3, 3)
        assert 2 * a == Vector3(2, 4, 6)
        assert -a == Vector3(-1, -2, -3)
        assert a.dot(b) == 32

    def test_normalize(self):
        v = Vector3(3, 0, 4).normalize()
        assert v.length() == pytest.approx(1.0)
        assert Vector3(0, 0, 0).normalize() == Vector3(0, 0, 0)

    def test_to_array(self):
        assert list(Vector3(1, 2, 3).to_array()) == [1.0, 2.0, 3.0]

    def test_is_immutable_and_hash_is_stable(self):
        v = Vector3(1, 2, 3)
        h = hash(v)
        with pytest.raises(AttributeError):
            v.x = 5.0  # type: ignore[misc]
        with pytest.raises(AttributeError):
            del v.z
        assert hash(v) == h
        assert {v: "a"}[Vector3(1, 2, 3)] == "a"


class TestSpring:
    def test_rest_length_captured_at_construction(self):
        a = Point(0, 0, 0)
        b = Point(3, 4, 0)
        s = Spring(a, b, stiffness=100.0, kind=SpringKind.BEND)
        assert s.rest_length == pytest.approx(5.0)

        b.pos = Vector3(10, 0, 0)
        assert s.rest_length == pytest.approx(5.0)

    def test_rest_length_is_read_only(self):
        s = Spring(Point(0, 0, 0), Point(1, 0, 0))
        with pytest.raises(AttributeError):
            s.rest_length = 2.0  # type: ignore[misc]

    def test_shares_points_by_reference(self):
        a = Point(0, 0, 0)
        b = Point(1, 0, 0)
        s = Spring(a, b)
        assert s.a is a and s.b is b


class TestObstacles:
    def test_plane_normal_is_normalized(self):
        plane = Plane(Vector3(0, 1, 0), Vector3(0, 2, 0))
        assert plane.normal == Vector3(0, 1, 0)

    def test_plane_rejects_zero_normal(self):
        with pytest.raises(ValueError):
            Plane(Vector3(0, 0, 0), Vector3(0, 0, 0))

    def test_plane_is_immutable(self):
        plane = Plane(Vector3(0, 0, 0), Vector3(0, 1, 0))
        with pytest.raises(AttributeError):
            plane.point = Vector3(1, 1, 1)  # type: ignore[misc]

    def test_plane_geometry_cannot_be_mutated_in_place(self):
        plane = Plane(Vector3(0, 0, 0), Vector3(0, 1, 0))
        with pytest.raises(AttributeError):
            plane.normal.x = 1.0  # type: ignore[misc]
        with pytest.raises(AttributeError):
            plane.point.y = 5.0  # type: ignore[misc]
        assert plane.normal == Vector3(0, 1, 0)
        assert plane.normal.length() == pytest.approx(1.0)

    def test_sphere_geometry_cannot_be_mutated_in_place(self):
        sphere = Sphere(Vector3(0, 30, -5), 30.0)
        with pytest.raises(AttributeError):
            sphere.center.y = 500.0  # type: ignore[misc]
        with pytest.raises(AttributeError):
            sphere.radius = 1.0  # type: ignore[misc]
        assert sphere.center == Vector3(0, 30, -5)

    @pytest.mark.parametrize("radius", [0.0, -1.0, math.nan])
    def test_sphere_rejects_bad_radius(self, radius):
        with pytest.raises(ValueError):
            Sphere(Vector3(0, 0, 0), radius)
