# tests/conftest.py
import pytest

from elli_nav.config.models import NavigationModel
from elli_nav.domain.entities.floorplan import Elevator, FloorPlan
from elli_nav.domain.entities.geography import Dimensions, Point
from elli_nav.domain.geometry import map_pixel_to_geo
from elli_nav.services.location import Fix

TINY_PNG = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="

NAV = NavigationModel()
BOUNDS = NAV.bounds.to_bounds()
DIMS = Dimensions(800.0, 600.0)


def make_plan(elevators=None, image_url=TINY_PNG, plan_id="plan-1") -> FloorPlan:
    if elevators is None:
        elevators = [
            Elevator(id="E1", name="Lobby Elevator", location=Point(700.0, 500.0), floor=1),
            Elevator(id="E2", name="Service Lift", location=Point(50.0, 550.0), floor=1),
        ]
    return FloorPlan(id=plan_id, name="Test Plan", image_url=image_url, dimensions=DIMS, elevators=elevators)


def fix_at(x: float, y: float, ts: float = 0.0) -> Fix:
    """A fix whose projection lands on pixel (x, y) of the 800x600 test plan."""
    return Fix(map_pixel_to_geo(Point(x, y), BOUNDS, DIMS), ts)


# ---------- test doubles ----------


class ScriptedBackend:
    """Returns canned answers (or raises them when they are exceptions)."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.requests = []

    def plan_route(self, request):
        self.requests.append(request)
        ans = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(ans, BaseException):
            raise ans
        return ans

    def detect_elevators(self, image_b64, mime_type):
        self.requests.append((image_b64, mime_type))
        ans = self.answers[0]
        if isinstance(ans, BaseException):
            raise ans
        return ans


class HeldRunner:
    """Keeps jobs until the test releases them, so requests stay in flight."""

    def __init__(self):
        self.jobs = []

    @property
    def busy(self) -> int:
        return len(self.jobs)

    def submit(self, job, done):
        self.jobs.append((job, done))

    def release(self):
        job, done = self.jobs.pop(0)
        done(job())

    def shutdown(self):
        pass


class LeakySource:
    """Location source whose callbacks survive stop(), to prove stale fixes are ignored."""

    def __init__(self):
        self.callbacks = {}
        self.stopped = []
        self._next = 0

    def start(self, on_fix, on_error):
        self._next += 1
        self.callbacks[self._next] = (on_fix, on_error)
        return self._next

    def stop(self, handle):
        self.stopped.append(handle)

    def get_current(self, on_fix, on_error, *, timeout_s, max_age_s):
        on_error("Timeout expired")


@pytest.fixture
def plan():
    return make_plan()
