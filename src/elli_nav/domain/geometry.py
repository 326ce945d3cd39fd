# domain/geometry.py
import math
from collections.abc import Sequence

import numpy as np

from elli_nav.domain.entities.floorplan import Elevator
from elli_nav.domain.entities.geography import Dimensions, GeoBounds, GeoPoint, Path, Point


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def nearest(point: Point, candidates: Sequence[Elevator]) -> Elevator | None:
    """Closest elevator to `point`; the earliest candidate wins ties."""
    if not candidates:
        return None
    xs = np.fromiter((e.location.x for e in candidates), dtype=float, count=len(candidates))
    ys = np.fromiter((e.location.y for e in candidates), dtype=float, count=len(candidates))
    # argmin returns the first index of the minimum
    return candidates[int(np.argmin(np.hypot(xs - point.x, ys - point.y)))]


def map_range(value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    if in_min == in_max:
        return (out_min + out_max) / 2
    return (value - in_min) * (out_max - out_min) / (in_max - in_min) + out_min


def clamp_to_image(p: Point, dims: Dimensions) -> Point:
    return Point(
        x=min(max(p.x, 0.0), dims.width),
        y=min(max(p.y, 0.0), dims.height),
    )


def map_geo_to_pixel(geo: GeoPoint, bounds: GeoBounds, dims: Dimensions) -> Point | None:
    """
    Project a fix onto the plan image. A fix outside the bounds is "off this
    floor plan" and yields None rather than a clamped edge pixel.
    """
    if not bounds.contains(geo):
        return None
    nw, se = bounds.north_west, bounds.south_east
    x = map_range(geo.longitude, nw.longitude, se.longitude, 0.0, dims.width)
    y = map_range(geo.latitude, nw.latitude, se.latitude, 0.0, dims.height)
    return clamp_to_image(Point(x, y), dims)


def map_pixel_to_geo(pixel: Point, bounds: GeoBounds, dims: Dimensions) -> GeoPoint | None:
    """
    Inverse projection. Pixels outside the image are extrapolated, which is
    what elevator markers outside the calibrated viewport need.
    """
    nw, se = bounds.north_west, bounds.south_east
    longitude = map_range(pixel.x, 0.0, dims.width, nw.longitude, se.longitude)
    latitude = map_range(pixel.y, 0.0, dims.height, nw.latitude, se.latitude)
    if math.isnan(latitude) or math.isnan(longitude):
        return None
    return GeoPoint(latitude=latitude, longitude=longitude)


def straight_line_path(start: Point, end: Point) -> Path:
    return [start, end]


def anchor_path(path: Sequence[Point], start: Point, end: Point) -> Path:
    """Force the endpoints of `path`; shorter than two points becomes the straight line."""
    if len(path) < 2:
        return straight_line_path(start, end)
    return [start, *path[1:-1], end]
