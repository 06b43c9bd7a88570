"""Geofence verification for worker check-ins.

Circle geofences compare the haversine distance against the radius. Polygon
geofences use ray casting; a point outside the polygon but within the
tolerance of its nearest edge is reported as within tolerance.
"""

from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt

from livestock_ops.calculators.types import (
    GeofenceConfig,
    GeofenceResult,
    GeofenceType,
    Point,
    VerificationStatus,
)

EARTH_RADIUS_METERS = 6371000
MAX_POLYGON_VERTICES = 20
MIN_POLYGON_VERTICES = 3


def haversine_distance(p1: Point, p2: Point) -> float:
    """Great-circle distance between two points in meters."""
    phi1, phi2 = radians(p1.lat), radians(p2.lat)
    d_phi = radians(p2.lat - p1.lat)
    d_lambda = radians(p2.lng - p1.lng)

    a = sin(d_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(d_lambda / 2) ** 2
    # Clamp for floating point drift on antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def validate_coordinates(lat: float, lng: float) -> bool:
    """Check latitude and longitude are within their inclusive ranges."""
    return -90 <= lat <= 90 and -180 <= lng <= 180


def verify_point_in_circle(
    point: Point,
    center: Point,
    radius_meters: float,
    tolerance_meters: float,
) -> GeofenceResult:
    """Verify a point against a circular geofence."""
    distance = haversine_distance(point, center)

    if distance <= radius_meters:
        return GeofenceResult(
            verified=True,
            within_tolerance=False,
            distance_meters=distance,
            status=VerificationStatus.VERIFIED,
        )
    if distance <= radius_meters + tolerance_meters:
        return GeofenceResult(
            verified=False,
            within_tolerance=True,
            distance_meters=distance,
            status=VerificationStatus.WITHIN_TOLERANCE,
        )
    return GeofenceResult(
        verified=False,
        within_tolerance=False,
        distance_meters=distance,
        status=VerificationStatus.OUTSIDE_GEOFENCE,
    )


def is_point_in_polygon(point: Point, vertices: list[Point]) -> bool:
    """Ray-casting containment test (lng as x, lat as y)."""
    if len(vertices) < MIN_POLYGON_VERTICES:
        return False

    inside = False
    x, y = point.lng, point.lat
    j = len(vertices) - 1
    for i in range(len(vertices)):
        xi, yi = vertices[i].lng, vertices[i].lat
        xj, yj = vertices[j].lng, vertices[j].lat
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def _distance_to_segment(point: Point, a: Point, b: Point) -> float:
    """Approximate meters from point to segment ab.

    Uses an equirectangular projection centered on the point, which is
    accurate at farm scale.
    """
    lat0 = radians(point.lat)
    meters_per_deg = EARTH_RADIUS_METERS * radians(1)

    def project(p: Point) -> tuple[float, float]:
        return (
            (p.lng - point.lng) * meters_per_deg * cos(lat0),
            (p.lat - point.lat) * meters_per_deg,
        )

    ax, ay = project(a)
    bx, by = project(b)
    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return sqrt(ax * ax + ay * ay)
    t = max(0.0, min(1.0, -(ax * dx + ay * dy) / length_sq))
    cx, cy = ax + t * dx, ay + t * dy
    return sqrt(cx * cx + cy * cy)


def distance_to_polygon_edge(point: Point, vertices: list[Point]) -> float:
    """Shortest distance in meters from a point to the polygon boundary."""
    if not vertices:
        return float("inf")
    if len(vertices) == 1:
        return haversine_distance(point, vertices[0])
    return min(
        _distance_to_segment(point, vertices[i], vertices[(i + 1) % len(vertices)])
        for i in range(len(vertices))
    )


def verify_point_in_polygon(
    point: Point,
    vertices: list[Point],
    tolerance_meters: float,
) -> GeofenceResult:
    """Verify a point against a polygon geofence."""
    if is_point_in_polygon(point, vertices):
        return GeofenceResult(
            verified=True,
            within_tolerance=False,
            distance_meters=0.0,
            status=VerificationStatus.VERIFIED,
        )

    distance = distance_to_polygon_edge(point, vertices)
    if distance <= tolerance_meters:
        return GeofenceResult(
            verified=False,
            within_tolerance=True,
            distance_meters=distance,
            status=VerificationStatus.WITHIN_TOLERANCE,
        )
    return GeofenceResult(
        verified=False,
        within_tolerance=False,
        distance_meters=distance,
        status=VerificationStatus.OUTSIDE_GEOFENCE,
    )


def verify_location_in_geofence(point: Point, geofence: GeofenceConfig) -> GeofenceResult:
    """Verify a check-in location against a farm geofence."""
    if not validate_coordinates(point.lat, point.lng):
        return GeofenceResult(
            verified=False,
            within_tolerance=False,
            distance_meters=float("inf"),
            status=VerificationStatus.OUTSIDE_GEOFENCE,
        )

    if geofence.geofence_type == GeofenceType.CIRCLE:
        if geofence.center is None or geofence.radius_meters is None:
            raise ValueError("Circle geofence requires a center and radius")
        return verify_point_in_circle(
            point,
            geofence.center,
            geofence.radius_meters,
            geofence.tolerance_meters,
        )

    return verify_point_in_polygon(point, geofence.vertices, geofence.tolerance_meters)


def validate_geofence(geofence: GeofenceConfig) -> list[str]:
    """Validate a geofence definition, returning error messages."""
    errors: list[str] = []

    if geofence.tolerance_meters < 0:
        errors.append("Tolerance cannot be negative")

    if geofence.geofence_type == GeofenceType.CIRCLE:
        if geofence.center is None:
            errors.append("Circle geofence requires a center")
        elif not validate_coordinates(geofence.center.lat, geofence.center.lng):
            errors.append("Center coordinates are invalid")
        if geofence.radius_meters is None or geofence.radius_meters <= 0:
            errors.append("Radius must be greater than 0")
    else:
        count = len(geofence.vertices)
        if count < MIN_POLYGON_VERTICES:
            errors.append(f"Polygon requires at least {MIN_POLYGON_VERTICES} vertices")
        if count > MAX_POLYGON_VERTICES:
            errors.append(f"Polygon cannot have more than {MAX_POLYGON_VERTICES} vertices")
        if any(not validate_coordinates(v.lat, v.lng) for v in geofence.vertices):
            errors.append("Vertex coordinates are invalid")

    return errors
