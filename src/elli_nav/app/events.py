# app/events.py
from dataclasses import dataclass
from typing import Literal

from elli_nav.domain.entities.floorplan import Elevator, FloorPlan
from elli_nav.domain.entities.geography import GeoPoint, Point
from elli_nav.services.path_provider import PathResult
from elli_nav.sim.event import BaseEvent

FixSource = Literal["initial", "watch"]


# User actions
@dataclass(order=True)
class FloorPlanLoaded(BaseEvent):
    plan: FloorPlan
    status: str | None = None  # loader summary, e.g. elevator detection outcome


@dataclass(order=True)
class ManualLocationSet(BaseEvent):
    point: Point


@dataclass(order=True)
class ElevatorSelected(BaseEvent):
    elevator_id: str


@dataclass(order=True)
class NavigationCancelled(BaseEvent):
    pass


@dataclass(order=True)
class LocationCleared(BaseEvent):
    pass


# Location watch
@dataclass(order=True)
class LocationFix(BaseEvent):
    geo: GeoPoint
    source: FixSource = "watch"
    watch_id: int | None = None  # None for the one-shot initial lookup


@dataclass(order=True)
class LocationError(BaseEvent):
    message: str
    source: FixSource = "watch"
    watch_id: int | None = None


# Path planning
@dataclass(order=True)
class PathRequested(BaseEvent):
    request_id: int  # versioning to make stale completions harmless
    start: Point
    target: Elevator
    plan: FloorPlan


@dataclass(order=True)
class PathReady(BaseEvent):
    request_id: int
    target_id: str
    result: PathResult


# Observability
@dataclass(order=True)
class Arrived(BaseEvent):
    elevator_id: str
    distance_px: float
