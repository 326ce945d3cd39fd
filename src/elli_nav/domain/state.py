# elli_nav/domain/state.py
from dataclasses import dataclass, fields

from elli_nav.domain.entities.floorplan import Elevator
from elli_nav.domain.entities.geography import GeoPoint, Path, Point

INITIAL_STATUS = "Please upload a floor plan to get started."


@dataclass
class NavigationState:
    user_location: Point | None = None
    user_geo_location: GeoPoint | None = None  # last raw fix, may be off the plan
    is_location_live: bool = False
    target_elevator: Elevator | None = None
    target_geo_estimate: GeoPoint | None = None  # speculative, extrapolated from pixels
    nearest_elevator: Elevator | None = None
    path: Path | None = None
    instructions: list[str] | None = None
    is_path_pending: bool = False
    path_outcome: str | None = None  # outcome of the stored provider result
    is_live_navigation_active: bool = False
    has_arrived: bool = False
    status_message: str = INITIAL_STATUS

    def reset(self, status: str) -> None:
        for f in fields(self):
            setattr(self, f.name, f.default)
        self.status_message = status

    @property
    def phase(self) -> str:
        """Conceptual state name, handy for logs and assertions."""
        if self.has_arrived:
            return "Arrived"
        if self.is_live_navigation_active:
            return "LiveNavigating"
        if self.target_elevator is not None and self.user_location is not None:
            return "TargetSelected-PathPending" if self.is_path_pending else "TargetSelected-PathReady"
        if self.user_location is not None:
            return "LocationSet-NoTarget"
        return "NoLocation"

    @property
    def has_planned_path(self) -> bool:
        # a provider result was stored; a bare display line has no instructions
        return bool(self.path) and self.instructions is not None
