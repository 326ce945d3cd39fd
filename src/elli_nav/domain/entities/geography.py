from dataclasses import dataclass


# Core geometry types shared by the coordinator and the path provider
@dataclass(frozen=True)
class Point:
    x: float  # pixels from the left edge of the plan image
    y: float  # pixels from the top edge


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float


@dataclass(frozen=True)
class GeoBounds:
    """Geographic position of the image corners: NW is pixel (0, 0), SE is (width, height)."""

    north_west: GeoPoint
    south_east: GeoPoint

    def contains(self, geo: GeoPoint) -> bool:
        nw, se = self.north_west, self.south_east
        if geo.latitude > nw.latitude or geo.latitude < se.latitude:
            return False
        return nw.longitude <= geo.longitude <= se.longitude


Path = list[Point]
