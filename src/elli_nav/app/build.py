# elli_nav/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from elli_nav.app.coordinator import NavigationCoordinator
from elli_nav.app.protocols import LocationSource, ReasoningBackend
from elli_nav.config.models import AppModel
from elli_nav.io.kernel_logging import NavLogging  # JSON logs
from elli_nav.io.recorder import AsyncSink, JsonlSink, Recorder
from elli_nav.runtime.services_factory import make_reasoning_backend, make_runner
from elli_nav.services.floorplans import load_floor_plan
from elli_nav.services.path_provider import PathProvider
from elli_nav.sim.hooks import NoopHooks


@dataclass
class App:
    config: AppModel
    coordinator: NavigationCoordinator
    backend: ReasoningBackend | None
    recorder: Recorder | None

    def open_plan(self, path: str | Path, name: str | None = None) -> None:
        """Load an image file, detect its elevators and hand the plan to the coordinator."""
        plan, status = load_floor_plan(path, detector=self.backend, name=name)
        self.coordinator.load_floor_plan(plan, status=status)

    def close(self) -> None:
        self.coordinator.close()
        if self.recorder is not None:
            self.recorder.close()


def build(
    cfg: AppModel | Mapping,
    *,
    location: LocationSource | None = None,
    backend: ReasoningBackend | None = None,
    recorder: Recorder | None = None,
    use_logging: bool = True,
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, AppModel) else AppModel.model_validate(cfg)

    # 1) Kernel hooks
    hooks = (
        NavLogging(run_id=model.run_id, level=model.log.level, debug=model.log.debug)
        if use_logging
        else NoopHooks()
    )

    # 2) Services (an explicit backend wins over the configured one)
    backend = backend if backend is not None else make_reasoning_backend(model.reasoning)
    provider = PathProvider(backend=backend)
    runner = make_runner(model.runner)
    if recorder is None and use_logging and model.log.debug:
        # non-blocking journal
        recorder = Recorder(AsyncSink(JsonlSink()))

    # 3) Coordinator (wires its own handlers)
    coordinator = NavigationCoordinator(
        model.navigation,
        watch=model.watch,
        provider=provider,
        runner=runner,
        location=location,
        hooks=hooks,
        recorder=recorder,
        run_id=model.run_id,
    )
    return App(config=model, coordinator=coordinator, backend=backend, recorder=recorder)
