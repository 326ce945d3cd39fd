# elli_nav/app/wiring.py
from elli_nav.app.controllers.navigation import NavigationHandler
from elli_nav.app.controllers.planning import PlanningHandler
from elli_nav.app.events import (
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
from elli_nav.sim.kernel import Kernel


def wire(kernel: Kernel, *, navigation: NavigationHandler, planning: PlanningHandler) -> None:
    k = kernel

    # user actions
    k.on(FloorPlanLoaded, navigation.on_floor_plan_loaded)
    k.on(ManualLocationSet, navigation.on_manual_location)
    k.on(ElevatorSelected, navigation.on_elevator_selected)
    k.on(NavigationCancelled, navigation.on_navigation_cancelled)
    k.on(LocationCleared, navigation.on_location_cleared)

    # location watch
    k.on(LocationFix, navigation.on_location_fix)
    k.on(LocationError, navigation.on_location_error)

    # planning: request goes out to the runner, completion comes back as PathReady
    k.on(PathRequested, planning.on_path_requested)
    k.on(PathReady, navigation.on_path_ready)
