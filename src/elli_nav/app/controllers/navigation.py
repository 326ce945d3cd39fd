# elli_nav/app/controllers/navigation.py
import logging
import time
from collections.abc import Callable

from elli_nav.app.events import (
    Arrived,
    ElevatorSelected,
    FloorPlanLoaded,
    LocationCleared,
    LocationError,
    LocationFix,
    ManualLocationSet,
    NavigationCancelled,
    PathReady,
    PathRequested,
)
from elli_nav.config.models import NavigationModel, WatchModel
from elli_nav.domain.entities.floorplan import Elevator, FloorPlan
from elli_nav.domain.entities.geography import GeoPoint, Point
from elli_nav.domain.geometry import (
    anchor_path,
    clamp_to_image,
    distance,
    map_geo_to_pixel,
    map_pixel_to_geo,
    nearest,
    straight_line_path,
)
from elli_nav.domain.state import INITIAL_STATUS, NavigationState
from elli_nav.io.business_events import ArrivedBiz, PathSettledBiz, StatusChangedBiz
from elli_nav.io.recorder import Recorder
from elli_nav.services.location import Fix
from elli_nav.sim.event import BaseEvent
from elli_nav.sim.hooks import KernelHooks, NoopHooks

log = logging.getLogger(__name__)

APPROX_NOTE = " (Note: location mapping is approximate for uploaded plans.)"

OUTCOME_STATUS = {
    "planned": "AI path to {name} generated. Follow instructions.",
    "partial": "AI could not determine a multi-segment path for {name}. Showing straight line.",
    "failed": "AI pathfinding failed for {name}. Showing straight line.",
    "unavailable": "AI pathfinding unavailable (AI client or image missing). Showing straight line.",
}


def _fmt(geo: GeoPoint) -> str:
    return f"({geo.latitude:.4f}, {geo.longitude:.4f})"


class NavigationHandler:
    """
    Owns NavigationState and every transition of it.

    Runs only on the kernel thread. Producers elsewhere (location watches,
    path workers) reach it through `post`, and their events carry the id of
    the watch / request that produced them so that anything from a stopped
    watch or a superseded request is dropped instead of mutating state.
    """

    def __init__(
        self,
        state: NavigationState,
        *,
        navigation: NavigationModel,
        watch: WatchModel,
        post: Callable[[BaseEvent], None],
        location=None,
        clock: Callable[[], float] = time.time,
        recorder: Recorder | None = None,
        hooks: KernelHooks | None = None,
        run_id: str = "local",
    ):
        self.state = state
        self.hooks = hooks or NoopHooks()
        self.bounds = navigation.bounds.to_bounds()
        self.arrival_threshold_px = navigation.arrival_threshold_px
        self.displacement_px = navigation.displacement_threshold_px
        self.watch_cfg = watch
        self.location = location
        self.recorder = recorder
        self.run_id = run_id
        self.plan: FloorPlan | None = None
        self._post = post
        self._clock = clock
        self._request_id = 0  # bumped per issued request and on every reset
        self._watch_id = 0  # bumped on every start and stop
        self._watch_handle: int | None = None
        self._request_origin: Point | None = None  # user location when the last request went out

    # --------------- Helpers -----------------------------

    def _status(self, t: float, msg: str) -> None:
        self.state.status_message = msg
        if self.recorder:
            self.recorder.emit(
                StatusChangedBiz(
                    run_id=self.run_id, t=t, name="status_changed", status=msg, phase=self.state.phase
                )
            )

    def _estimate(self, elevator: Elevator) -> GeoPoint | None:
        return map_pixel_to_geo(elevator.location, self.bounds, self.plan.dimensions)

    @property
    def watch_active(self) -> bool:
        return self._watch_handle is not None

    def _start_watch(self) -> bool:
        s = self.state
        if self.location is None or self.plan is None or s.target_elevator is None:
            s.is_live_navigation_active = False
            return False
        self._watch_id += 1
        wid = self._watch_id

        def on_fix(fix: Fix) -> None:
            self._post(LocationFix(t=self._clock(), geo=fix.geo, source="watch", watch_id=wid))

        def on_error(message: str) -> None:
            self._post(LocationError(t=self._clock(), message=message, source="watch", watch_id=wid))

        self._watch_handle = self.location.start(on_fix, on_error)
        s.is_live_navigation_active = True
        return True

    def _stop_watch(self) -> None:
        if self._watch_handle is not None:
            self.location.stop(self._watch_handle)
            self._watch_handle = None
        # fixes already queued from the old watch become stale
        self._watch_id += 1
        self.state.is_live_navigation_active = False

    def _request_path(self, t: float) -> list[BaseEvent]:
        s = self.state
        if self.plan is None or s.user_location is None or s.target_elevator is None:
            return []
        if s.is_path_pending:
            # dropped, not queued: the completion is re-anchored to whatever is current then
            log.debug("path request for %s dropped, request %d in flight", s.target_elevator.id, self._request_id)
            return []
        self._request_id += 1
        s.is_path_pending = True
        s.path = None
        s.instructions = None
        s.path_outcome = None
        self._request_origin = s.user_location
        self._status(t, f"AI is planning your route to {s.target_elevator.name}...")
        return [
            PathRequested(
                t=t,
                request_id=self._request_id,
                start=s.user_location,
                target=s.target_elevator,
                plan=self.plan,
            )
        ]

    def _follow(self, t: float, pixel: Point) -> list[BaseEvent]:
        """Keep the route in step with a new fix for the selected target."""
        s = self.state
        if s.is_path_pending:
            return []
        moved = self._request_origin is None or distance(pixel, self._request_origin) > self.displacement_px
        if s.has_planned_path and not (s.path_outcome == "failed" and moved):
            s.path = [pixel, *s.path[1:]]
            return []
        # a failed route is asked for again once the user is past the threshold from its start
        return self._request_path(t) if moved else []

    def _begin_navigation(self, t: float) -> list[BaseEvent]:
        out = self._request_path(t)
        if not self._start_watch() and self.location is None:
            self._status(t, self.state.status_message + " Live location is not supported here.")
        return out

    def derive(self) -> None:
        """Recompute nearest elevator and the straight display path after a transition."""
        s = self.state
        if s.user_location is None or self.plan is None:
            s.nearest_elevator = None
            if not s.is_path_pending:
                s.path = None
            return
        if s.target_elevator is None:
            s.nearest_elevator = nearest(s.user_location, self.plan.elevators)
            end = s.nearest_elevator.location if s.nearest_elevator else None
        else:
            s.nearest_elevator = None
            end = s.target_elevator.location
        if s.is_path_pending or s.has_arrived or s.has_planned_path:
            return
        s.path = straight_line_path(s.user_location, end) if end is not None else None

    # ------------ user actions --------------

    def on_floor_plan_loaded(self, ev: FloorPlanLoaded):
        self._stop_watch()
        self._request_id += 1
        self._request_origin = None
        self.plan = plan = ev.plan
        n = len(plan.elevators)
        summary = ev.status or (
            f"Loaded '{plan.name}'. Found {n} elevator(s)." if n else f"Loaded '{plan.name}'. No elevators on this plan."
        )
        self.state.reset(summary)
        if self.location is None:
            self._status(ev.t, f"{summary} Live location is not supported. Click map to set location.")
            return []

        self._status(ev.t, f"{summary} Attempting initial location. Click map or an elevator to start.")
        self.location.get_current(
            lambda fix: self._post(LocationFix(t=self._clock(), geo=fix.geo, source="initial")),
            lambda message: self._post(LocationError(t=self._clock(), message=message, source="initial")),
            timeout_s=self.watch_cfg.initial_timeout_s,
            max_age_s=self.watch_cfg.initial_max_age_s,
        )
        return []

    def on_manual_location(self, ev: ManualLocationSet):
        if self.plan is None:
            self._status(ev.t, "Load a floor plan before setting a location.")
            return []
        self._stop_watch()
        s = self.state
        s.user_location = clamp_to_image(ev.point, self.plan.dimensions)
        s.is_location_live = False
        s.instructions = None
        s.has_arrived = False

        out: list[BaseEvent] = []
        found = nearest(s.user_location, self.plan.elevators)
        if found is not None:
            s.target_elevator = found
            s.target_geo_estimate = self._estimate(found)
            self._status(ev.t, f"Manual location set. Navigating to nearest elevator {found.name}.")
            out = self._begin_navigation(ev.t)
        else:
            s.target_elevator = None
            s.target_geo_estimate = None
            s.path = None
            self._status(ev.t, "Location set manually. No elevators found or defined for this plan.")
        self.derive()
        return out

    def on_elevator_selected(self, ev: ElevatorSelected):
        if self.plan is None:
            self._status(ev.t, "Load a floor plan before selecting an elevator.")
            return []
        elevator = self.plan.elevator(ev.elevator_id)
        if elevator is None:
            self._status(ev.t, f"Unknown elevator {ev.elevator_id!r} on this plan.")
            return []
        self._stop_watch()
        s = self.state
        s.target_elevator = elevator
        s.instructions = None
        s.has_arrived = False
        s.target_geo_estimate = self._estimate(elevator)

        out: list[BaseEvent] = []
        if s.user_location is not None:
            self._status(ev.t, f"Targeting {elevator.name}.")
            out = self._begin_navigation(ev.t)
        else:
            if not s.is_path_pending:
                s.path = None
            msg = f"Targeting {elevator.name}. "
            if s.target_geo_estimate is not None:
                msg += f"(Est. GPS: {_fmt(s.target_geo_estimate)}, speculative for uploaded plans) "
            msg += "Set your location (click map) to start navigation."
            self._status(ev.t, msg)
        self.derive()
        return out

    def on_navigation_cancelled(self, ev: NavigationCancelled):
        self._stop_watch()
        s = self.state
        if s.target_elevator is not None:
            self._status(ev.t, f"Navigation to {s.target_elevator.name} cancelled.")
        elif self.plan is not None:
            self._status(ev.t, "Navigation stopped. Click map or an elevator to restart.")
        else:
            self._status(ev.t, INITIAL_STATUS)
        self.derive()
        return []

    def on_location_cleared(self, ev: LocationCleared):
        self._stop_watch()
        self._request_id += 1
        self._request_origin = None
        self.state.reset(INITIAL_STATUS)
        if self.plan is not None:
            self._status(ev.t, "Location cleared. Click map or an elevator to start.")
        return []

    # ------------ location watch --------------

    def on_location_fix(self, ev: LocationFix):
        if ev.source == "watch" and (ev.watch_id != self._watch_id or self._watch_handle is None):
            self.hooks.drop(ev, reason="stale_watch", current=self._watch_id)
            return []
        if self.plan is None:
            self._status(ev.t, "Cannot process location: floor plan not loaded.")
            return []

        s = self.state
        s.user_geo_location = ev.geo
        navigating = s.is_live_navigation_active and s.target_elevator is not None
        pixel = map_geo_to_pixel(ev.geo, self.bounds, self.plan.dimensions)
        if pixel is None:
            # off this plan: keep the last pixel position, path and target
            s.is_location_live = False
            if navigating:
                self._status(ev.t, f"Navigating to {s.target_elevator.name}: you appear outside the mapped area.")
            else:
                self._status(ev.t, f"Location {_fmt(ev.geo)} appears outside the mapped area of this plan.")
            return []

        s.user_location = pixel
        s.is_location_live = True

        out: list[BaseEvent] = []
        if navigating:
            target = s.target_elevator
            d = distance(pixel, target.location)
            if d < self.arrival_threshold_px:
                self._stop_watch()
                s.path = None
                s.has_arrived = True
                self._status(ev.t, f"Arrived at {target.name}!")
                if self.recorder:
                    self.recorder.emit(
                        ArrivedBiz(run_id=self.run_id, t=ev.t, name="arrived", elevator_id=target.id, distance_px=d)
                    )
                out.append(Arrived(t=ev.t, elevator_id=target.id, distance_px=d))
            else:
                self._status(ev.t, f"Navigating to {target.name}... location updated.{APPROX_NOTE}")
                out = self._follow(ev.t, pixel)
        else:
            if ev.source == "initial":
                self._status(ev.t, f"Initial location acquired for current plan.{APPROX_NOTE}")
            else:
                self._status(ev.t, f"Location updated: {_fmt(ev.geo)}. Mapped to plan.{APPROX_NOTE}")
            if s.target_elevator is not None and not s.has_arrived:
                out = self._follow(ev.t, pixel)
        self.derive()
        return out

    def on_location_error(self, ev: LocationError):
        if ev.source == "initial":
            self._status(ev.t, f"Initial location failed: {ev.message}. Click map or an elevator.")
            return []
        if ev.watch_id != self._watch_id or self._watch_handle is None:
            self.hooks.drop(ev, reason="stale_watch", current=self._watch_id)
            return []
        self._stop_watch()
        self._status(ev.t, f"Location watch error: {ev.message}. Click the map to set your location.")
        self.derive()
        return []

    # ------------ path planning --------------

    def on_path_ready(self, ev: PathReady):
        if ev.request_id != self._request_id:
            self.hooks.drop(ev, reason="stale_request", current=self._request_id)
            return []
        s = self.state
        s.is_path_pending = False
        target = s.target_elevator
        if target is None or s.user_location is None or s.has_arrived:
            self.derive()
            return []
        if target.id != ev.target_id:
            # target switched while planning; the result describes another elevator
            out = self._request_path(ev.t)
            s.path = straight_line_path(s.user_location, target.location)
            self.derive()
            return out

        s.path = anchor_path(ev.result.path, s.user_location, target.location)
        s.instructions = list(ev.result.instructions)
        s.path_outcome = ev.result.outcome
        self._status(ev.t, OUTCOME_STATUS[ev.result.outcome].format(name=target.name))
        if self.recorder:
            self.recorder.emit(
                PathSettledBiz(
                    run_id=self.run_id,
                    t=ev.t,
                    name="path_settled",
                    request_id=ev.request_id,
                    target_id=target.id,
                    outcome=ev.result.outcome,
                    points=len(s.path),
                    instructions=len(s.instructions),
                )
            )
        self.derive()
        return []
