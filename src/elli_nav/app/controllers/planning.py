# elli_nav/app/controllers/planning.py
import logging
import time
from collections.abc import Callable

from elli_nav.app.events import PathReady, PathRequested
from elli_nav.app.protocols import PathRunner
from elli_nav.services.path_provider import PathProvider, PathResult
from elli_nav.sim.event import BaseEvent

log = logging.getLogger(__name__)


class PlanningHandler:
    """Hands PathRequested to a runner; the completion comes back as PathReady."""

    def __init__(
        self,
        provider: PathProvider,
        runner: PathRunner,
        post: Callable[[BaseEvent], None],
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.runner = runner
        self._post = post
        self._clock = clock

    def on_path_requested(self, ev: PathRequested):
        def job() -> PathResult:
            try:
                return self.provider.request_path(ev.start, ev.target, ev.plan)
            except Exception as exc:
                # the provider owns backend failures; this only guards its own bugs
                log.exception("path provider raised for request %d", ev.request_id)
                return PathProvider.fallback(ev.start, ev.target, "failed", detail=repr(exc))

        def done(result: PathResult) -> None:
            self._post(
                PathReady(t=self._clock(), request_id=ev.request_id, target_id=ev.target.id, result=result)
            )

        self.runner.submit(job, done)
        return []
