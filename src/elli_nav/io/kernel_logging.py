# io/kernel_logging.py
import json
import logging
import sys
from dataclasses import fields, is_dataclass

from elli_nav.sim.hooks import NoopHooks


def _default_json_logger(name="elli_nav", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)

        class _JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "msg": record.getMessage(),
                    "logger": record.name,
                }
                extra = getattr(record, "extra", None)
                if isinstance(extra, dict):
                    payload.update(extra)
                return json.dumps(payload, default=str)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class NavLogging(NoopHooks):
    """
    One place to shape and emit structured logs for the navigation kernel.
    """

    BUSINESS = {
        "FloorPlanLoaded",
        "ManualLocationSet",
        "ElevatorSelected",
        "NavigationCancelled",
        "LocationCleared",
        "LocationError",
        "PathRequested",
        "PathReady",
        "Arrived",
    }

    # payloads too bulky for a log line (image data URLs, whole plans)
    _SKIP = {"plan", "result"}

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.run_id, self.debug = run_id, debug
        self.log = logger or _default_json_logger(level=level)

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    def _shape_event(self, ev, want_name: bool = False):
        name = type(ev).__name__
        base = {"t": getattr(ev, "t", None)}
        for f in ("request_id", "watch_id", "elevator_id", "target_id", "source", "message"):
            if hasattr(ev, f):
                base[f] = getattr(ev, f)
        if is_dataclass(ev):
            for f in fields(ev):
                if f.name in base or f.name in self._SKIP:
                    continue
                base[f.name] = getattr(ev, f.name)
        result = getattr(ev, "result", None)
        if result is not None:
            base["outcome"] = result.outcome
            base["points"] = len(result.path)
        plan = getattr(ev, "plan", None)
        if plan is not None:
            base["plan_id"] = plan.id
        return (name, base) if want_name else base

    # --------------------------------------------------------

    def run_start(self, *, max_events: int | None, qsize: int | None):
        if self.debug:
            self._emit("DEBUG", "run_start", max_events=max_events, qsize=qsize)

    def run_end(self, *, processed: int, **extra):
        if self.debug:
            self._emit("DEBUG", "run_end", processed=processed, **extra)

    def dispatch_start(self, ev, *, seq: int, qsize: int, handlers: int):
        name, extra = self._shape_event(ev, want_name=True)
        level = "INFO" if name in self.BUSINESS else ("DEBUG" if self.debug else None)
        if level:
            self._emit(level, name, **extra, seq=seq, qsize=qsize, handlers=handlers)

    def dispatch_end(self, ev, *, out_events: int, ms: float):
        if self.debug:
            self._emit("DEBUG", "dispatch_done", event=type(ev).__name__, out_events=out_events, ms=ms)

    def drop(self, ev, *, reason: str, **extra):
        name, shaped = self._shape_event(ev, want_name=True)
        self._emit("INFO", "event_dropped", event=name, reason=reason, **shaped, **extra)

    def error(self, ev, *, reason: str, **extra):
        name, shaped = self._shape_event(ev, want_name=True)
        self._emit("ERROR", "kernel_error", event=name, reason=reason, **shaped, **extra)
