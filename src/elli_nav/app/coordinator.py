# elli_nav/app/coordinator.py
import time
from collections.abc import Callable

from elli_nav.app.controllers.navigation import NavigationHandler
from elli_nav.app.controllers.planning import PlanningHandler
from elli_nav.app.events import (
    ElevatorSelected,
    FloorPlanLoaded,
    LocationCleared,
    ManualLocationSet,
    NavigationCancelled,
)
from elli_nav.app.protocols import LocationSource, PathRunner, PathSource
from elli_nav.app.wiring import wire
from elli_nav.config.models import NavigationModel, WatchModel
from elli_nav.domain.entities.floorplan import FloorPlan
from elli_nav.domain.entities.geography import Point
from elli_nav.domain.state import NavigationState
from elli_nav.io.recorder import Recorder
from elli_nav.services.path_provider import PathProvider
from elli_nav.services.runners import InlineRunner
from elli_nav.sim.event import BaseEvent
from elli_nav.sim.hooks import KernelHooks
from elli_nav.sim.kernel import Kernel


class NavigationCoordinator:
    """
    Imperative façade over the navigation kernel.

    Every user action is posted as an event and dispatched before the call
    returns, so callers see the resulting state immediately. With a threaded
    runner or a live location source, further events (path completions,
    fixes) arrive later; call `pump()` or `run_until_idle()` from the same
    thread to apply them.
    """

    def __init__(
        self,
        navigation: NavigationModel | None = None,
        *,
        watch: WatchModel | None = None,
        provider: PathSource | None = None,
        runner: PathRunner | None = None,
        location: LocationSource | None = None,
        hooks: KernelHooks | None = None,
        recorder: Recorder | None = None,
        clock: Callable[[], float] = time.time,
        run_id: str = "local",
    ):
        self.clock = clock
        self.kernel = Kernel(hooks=hooks)
        self.state = NavigationState()
        self.provider = provider or PathProvider(backend=None)
        self.runner = runner or InlineRunner()
        self.location = location
        self.navigation = NavigationHandler(
            self.state,
            navigation=navigation or NavigationModel(),
            watch=watch or WatchModel(),
            post=self.kernel.post,
            location=location,
            clock=clock,
            recorder=recorder,
            hooks=hooks,
            run_id=run_id,
        )
        self.planning = PlanningHandler(self.provider, self.runner, post=self.kernel.post, clock=clock)
        wire(self.kernel, navigation=self.navigation, planning=self.planning)

    # ---- queries ----

    @property
    def plan(self) -> FloorPlan | None:
        return self.navigation.plan

    @property
    def status(self) -> str:
        return self.state.status_message

    @property
    def busy(self) -> bool:
        """True while a path job is running or a watch may still deliver fixes."""
        return self.runner.busy > 0 or self.navigation.watch_active

    # ---- operations ----

    def _dispatch(self, ev: BaseEvent) -> int:
        self.kernel.post(ev)
        return self.kernel.run()

    def load_floor_plan(self, plan: FloorPlan, status: str | None = None) -> None:
        self._dispatch(FloorPlanLoaded(t=self.clock(), plan=plan, status=status))

    def set_manual_location(self, point: Point) -> None:
        self._dispatch(ManualLocationSet(t=self.clock(), point=point))

    def select_elevator(self, elevator_id: str) -> None:
        self._dispatch(ElevatorSelected(t=self.clock(), elevator_id=elevator_id))

    def cancel_navigation(self) -> None:
        self._dispatch(NavigationCancelled(t=self.clock()))

    def clear_location(self) -> None:
        self._dispatch(LocationCleared(t=self.clock()))

    def pump(self) -> int:
        """Apply whatever producers have posted so far."""
        return self.kernel.run()

    def run_until_idle(self, timeout: float = 5.0) -> int:
        return self.kernel.run_until_idle(timeout, still_busy=lambda: self.busy)

    def close(self) -> None:
        if self.navigation.watch_active:
            self.cancel_navigation()
        self.runner.shutdown()
