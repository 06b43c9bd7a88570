"""Tests for geofence verification."""

import pytest
from hypothesis import given, settings, strategies as st

from livestock_ops.calculators.geofence import (
    distance_to_polygon_edge,
    haversine_distance,
    is_point_in_polygon,
    validate_coordinates,
    validate_geofence,
    verify_location_in_geofence,
)
from livestock_ops.calculators.types import (
    GeofenceConfig,
    GeofenceType,
    Point,
    VerificationStatus,
)

latitudes = st.floats(min_value=-90, max_value=90, allow_nan=False)
longitudes = st.floats(min_value=-180, max_value=180, allow_nan=False)
points = st.builds(Point, lat=latitudes, lng=longitudes)

SQUARE = [
    Point(0.0, 0.0),
    Point(0.0, 0.01),
    Point(0.01, 0.01),
    Point(0.01, 0.0),
]


def circle(radius: float = 100.0, tolerance: float = 50.0) -> GeofenceConfig:
    return GeofenceConfig(
        geofence_type=GeofenceType.CIRCLE,
        center=Point(0.0, 0.0),
        radius_meters=radius,
        tolerance_meters=tolerance,
    )


class TestHaversine:
    """Test great-circle distance."""

    def test_one_degree_of_latitude(self):
        """One degree of latitude is about 111 km."""
        distance = haversine_distance(Point(0, 0), Point(1, 0))
        assert distance == pytest.approx(111195, rel=1e-3)

    def test_antipodal_points(self):
        distance = haversine_distance(Point(0, 0), Point(0, 180))
        assert distance == pytest.approx(20015087, rel=1e-3)

    @given(a=points, b=points)
    @settings(max_examples=100)
    def test_symmetric_and_non_negative(self, a: Point, b: Point):
        d1 = haversine_distance(a, b)
        d2 = haversine_distance(b, a)
        assert d1 >= 0
        assert d1 == pytest.approx(d2, abs=1e-6)

    @given(p=points)
    def test_distance_to_self_is_zero(self, p: Point):
        assert haversine_distance(p, p) == pytest.approx(0, abs=1e-6)


class TestCoordinates:
    """Test coordinate range checks."""

    def test_bounds_are_inclusive(self):
        assert validate_coordinates(90, 180) is True
        assert validate_coordinates(-90, -180) is True

    def test_out_of_range(self):
        assert validate_coordinates(90.0001, 0) is False
        assert validate_coordinates(0, -180.5) is False


class TestCircleGeofence:
    """Test circle verification bands."""

    def test_inside_radius_is_verified(self):
        result = verify_location_in_geofence(Point(0.0005, 0), circle())
        assert result.verified is True
        assert result.status == VerificationStatus.VERIFIED

    def test_inside_tolerance_band(self):
        result = verify_location_in_geofence(Point(0.0012, 0), circle())
        assert result.verified is False
        assert result.within_tolerance is True
        assert result.status == VerificationStatus.WITHIN_TOLERANCE

    def test_outside(self):
        result = verify_location_in_geofence(Point(0.002, 0), circle())
        assert result.status == VerificationStatus.OUTSIDE_GEOFENCE
        assert result.distance_meters == pytest.approx(222.4, rel=1e-2)

    def test_invalid_coordinates_are_outside(self):
        result = verify_location_in_geofence(Point(95, 0), circle())
        assert result.status == VerificationStatus.OUTSIDE_GEOFENCE
        assert result.distance_meters == float("inf")

    def test_missing_center_raises(self):
        config = GeofenceConfig(geofence_type=GeofenceType.CIRCLE, radius_meters=10)
        with pytest.raises(ValueError):
            verify_location_in_geofence(Point(0, 0), config)

    @given(
        lat=st.floats(min_value=-0.01, max_value=0.01),
        lng=st.floats(min_value=-0.01, max_value=0.01),
        radius=st.floats(min_value=1, max_value=2000),
    )
    @settings(max_examples=100)
    def test_verified_means_within_radius(self, lat: float, lng: float, radius: float):
        result = verify_location_in_geofence(Point(lat, lng), circle(radius=radius))
        if result.verified:
            assert result.distance_meters <= radius
        else:
            assert result.distance_meters > radius


class TestPolygonGeofence:
    """Test polygon verification."""

    def polygon(self, tolerance: float = 100.0) -> GeofenceConfig:
        return GeofenceConfig(
            geofence_type=GeofenceType.POLYGON,
            vertices=SQUARE,
            tolerance_meters=tolerance,
        )

    def test_point_inside(self):
        assert is_point_in_polygon(Point(0.005, 0.005), SQUARE) is True
        result = verify_location_in_geofence(Point(0.005, 0.005), self.polygon())
        assert result.status == VerificationStatus.VERIFIED
        assert result.distance_meters == 0.0

    def test_point_just_outside_edge(self):
        result = verify_location_in_geofence(Point(0.005, 0.0105), self.polygon())
        assert result.status == VerificationStatus.WITHIN_TOLERANCE
        assert result.distance_meters == pytest.approx(55.6, rel=1e-2)

    def test_point_far_outside(self):
        result = verify_location_in_geofence(Point(0.005, 0.02), self.polygon())
        assert result.status == VerificationStatus.OUTSIDE_GEOFENCE

    def test_degenerate_polygon_contains_nothing(self):
        assert is_point_in_polygon(Point(0, 0), SQUARE[:2]) is False

    def test_edge_distance_without_vertices(self):
        assert distance_to_polygon_edge(Point(0, 0), []) == float("inf")


class TestValidateGeofence:
    """Test geofence definition validation."""

    def test_valid_circle(self):
        assert validate_geofence(circle()) == []

    def test_circle_errors(self):
        config = GeofenceConfig(
            geofence_type=GeofenceType.CIRCLE,
            center=Point(100, 0),
            radius_meters=0,
            tolerance_meters=-1,
        )
        errors = validate_geofence(config)
        assert "Tolerance cannot be negative" in errors
        assert "Center coordinates are invalid" in errors
        assert "Radius must be greater than 0" in errors

    def test_polygon_vertex_limits(self):
        too_few = GeofenceConfig(geofence_type=GeofenceType.POLYGON, vertices=SQUARE[:2])
        assert validate_geofence(too_few) == ["Polygon requires at least 3 vertices"]

        too_many = GeofenceConfig(
            geofence_type=GeofenceType.POLYGON,
            vertices=[Point(i * 0.001, 0) for i in range(21)],
        )
        assert validate_geofence(too_many) == ["Polygon cannot have more than 20 vertices"]
