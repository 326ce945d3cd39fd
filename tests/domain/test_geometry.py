# tests/domain/test_geometry.py
import math

import pytest

from elli_nav.domain.entities.floorplan import Elevator, FloorPlan
from elli_nav.domain.entities.geography import Dimensions, GeoBounds, GeoPoint, Point
from elli_nav.domain.geometry import (
    anchor_path,
    distance,
    map_geo_to_pixel,
    map_pixel_to_geo,
    map_range,
    nearest,
    straight_line_path,
)

BOUNDS = GeoBounds(north_west=GeoPoint(34.0529, -118.2445), south_east=GeoPoint(34.0520, -118.2425))
DIMS = Dimensions(800.0, 600.0)


def elev(eid, x, y):
    return Elevator(id=eid, name=eid, location=Point(x, y))


def test_distance():
    assert distance(Point(0, 0), Point(3, 4)) == 5.0
    assert distance(Point(700, 500), Point(695, 505)) == pytest.approx(7.0710678)


def test_nearest_empty_unique_and_ties():
    assert nearest(Point(0, 0), []) is None

    a, b, c = elev("a", 10, 10), elev("b", 100, 100), elev("c", 500, 500)
    for order in ([a, b, c], [c, b, a], [b, a, c]):
        assert nearest(Point(90, 95), order).id == "b"

    # equidistant: the earliest candidate wins
    left, right = elev("left", 0, 50), elev("right", 100, 50)
    assert nearest(Point(50, 50), [left, right]).id == "left"
    assert nearest(Point(50, 50), [right, left]).id == "right"


def test_geo_to_pixel_center_of_bounds():
    p = map_geo_to_pixel(GeoPoint(34.05245, -118.2435), BOUNDS, DIMS)
    assert p.x == pytest.approx(400.0)
    assert p.y == pytest.approx(300.0)


def test_geo_to_pixel_is_linear_per_axis():
    # longitude -118.2435 is half way across; latitude 34.0524 is 5/9 of the way down
    p = map_geo_to_pixel(GeoPoint(34.0524, -118.2435), BOUNDS, DIMS)
    assert p.x == pytest.approx(400.0)
    assert p.y == pytest.approx(600.0 * 5 / 9)


def test_corners_map_to_image_corners():
    assert map_geo_to_pixel(BOUNDS.north_west, BOUNDS, DIMS) == Point(0.0, 0.0)
    se = map_geo_to_pixel(BOUNDS.south_east, BOUNDS, DIMS)
    assert se.x == pytest.approx(800.0) and se.y == pytest.approx(600.0)


@pytest.mark.parametrize(
    "geo",
    [
        GeoPoint(34.0530, -118.2435),  # north of NW
        GeoPoint(34.0519, -118.2435),  # south of SE
        GeoPoint(34.0524, -118.2446),  # west of NW
        GeoPoint(34.0524, -118.2424),  # east of SE
    ],
)
def test_geo_outside_bounds_is_rejected(geo):
    assert map_geo_to_pixel(geo, BOUNDS, DIMS) is None


def test_round_trip_inside_bounds():
    for lat, lon in [(34.0528, -118.2444), (34.0521, -118.2426), (34.05233, -118.24371)]:
        g = GeoPoint(lat, lon)
        back = map_pixel_to_geo(map_geo_to_pixel(g, BOUNDS, DIMS), BOUNDS, DIMS)
        assert back.latitude == pytest.approx(lat, abs=1e-9)
        assert back.longitude == pytest.approx(lon, abs=1e-9)

    for x, y in [(1.0, 1.0), (400.0, 300.0), (799.0, 12.5)]:
        p = map_geo_to_pixel(map_pixel_to_geo(Point(x, y), BOUNDS, DIMS), BOUNDS, DIMS)
        assert p.x == pytest.approx(x, abs=1e-6)
        assert p.y == pytest.approx(y, abs=1e-6)


def test_pixel_to_geo_extrapolates_outside_image():
    g = map_pixel_to_geo(Point(-400.0, 1200.0), BOUNDS, DIMS)
    assert g.longitude == pytest.approx(-118.2455)
    assert g.latitude == pytest.approx(34.0511)


def test_degenerate_bounds_use_midpoint():
    assert map_range(5.0, 3.0, 3.0, 0.0, 800.0) == 400.0
    flat = GeoBounds(north_west=GeoPoint(34.0524, -118.2435), south_east=GeoPoint(34.0524, -118.2435))
    p = map_geo_to_pixel(GeoPoint(34.0524, -118.2435), flat, DIMS)
    assert p == Point(400.0, 300.0)


def test_pixel_to_geo_nan_is_rejected():
    assert map_pixel_to_geo(Point(math.nan, 1.0), BOUNDS, DIMS) is None


def test_straight_line_and_anchoring():
    s, e = Point(1, 2), Point(3, 4)
    assert straight_line_path(s, e) == [s, e]
    drifted = [Point(9, 9), Point(5, 5), Point(8, 8)]
    assert anchor_path(drifted, s, e) == [s, Point(5, 5), e]
    assert anchor_path([Point(9, 9)], s, e) == [s, e]


def test_floor_plan_rejects_duplicate_elevator_ids():
    with pytest.raises(ValueError):
        FloorPlan(id="p", name="p", image_url="", dimensions=DIMS, elevators=[elev("x", 1, 1), elev("x", 2, 2)])

    plan = FloorPlan(id="p", name="p", image_url="", dimensions=DIMS, elevators=[elev("a", 1, 1), elev("b", 2, 2)])
    assert [e.id for e in plan.elevators] == ["a", "b"]
    assert plan.elevator("b").location == Point(2, 2)
    assert plan.elevator("zzz") is None
