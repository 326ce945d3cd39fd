from collections.abc import Callable
from typing import Protocol, runtime_checkable

from elli_nav.domain.entities.floorplan import Elevator, FloorPlan
from elli_nav.domain.entities.geography import Point
from elli_nav.services.location import Fix
from elli_nav.services.path_provider import PathResult, RouteRequest


# ------------- External capabilities --------------------
@runtime_checkable
class ReasoningBackend(Protocol):
    """
    Responsibilities:
      • Answer a route request with JSON text
        {"path_coordinates": [{"x", "y"}...], "step_by_step_instructions": [...]}.
      • Answer an elevator-detection request with JSON text listing
        {"x_percent", "y_percent", "description"} records.
    Either call may raise; callers turn failures into fallbacks.
    """

    def plan_route(self, request: RouteRequest) -> str: ...
    def detect_elevators(self, image_b64: str, mime_type: str) -> str: ...


@runtime_checkable
class LocationSource(Protocol):
    """
    Push source of fixes.
      • start() begins a continuous watch and returns its handle.
      • stop() is synchronous: no callback fires for that handle once it returns.
      • get_current() is a one-shot lookup that may reuse a fix up to max_age_s old.
    """

    def start(self, on_fix: Callable[[Fix], None], on_error: Callable[[str], None]) -> int: ...
    def stop(self, handle: int) -> None: ...
    def get_current(
        self,
        on_fix: Callable[[Fix], None],
        on_error: Callable[[str], None],
        *,
        timeout_s: float,
        max_age_s: float,
    ) -> None: ...


# --------------- Services -------------------------
@runtime_checkable
class PathSource(Protocol):
    def request_path(self, start: Point, target: Elevator, plan: FloorPlan) -> PathResult: ...


@runtime_checkable
class PathRunner(Protocol):
    busy: int

    def submit(self, job: Callable[[], PathResult], done: Callable[[PathResult], None]) -> None: ...
    def shutdown(self) -> None: ...
