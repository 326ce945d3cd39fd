# elli_nav/services/location.py
import json
import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path as FsPath

from pydantic import BaseModel, ConfigDict, TypeAdapter

from elli_nav.domain.entities.geography import GeoPoint

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fix:
    geo: GeoPoint
    timestamp: float  # epoch seconds


OnFix = Callable[[Fix], None]
OnError = Callable[[str], None]


class ManualLocationSource:
    """
    Push source for embedding and tests: whoever owns it calls `push()` and
    `fail()`. Delivery happens on the caller's thread.
    """

    def __init__(self, current: Fix | None = None):
        self.current = current
        self._next = 0
        self._watches: dict[int, tuple[OnFix, OnError]] = {}
        self.started = 0
        self.stopped = 0

    @property
    def active(self) -> bool:
        return bool(self._watches)

    def start(self, on_fix: OnFix, on_error: OnError) -> int:
        self._next += 1
        self._watches[self._next] = (on_fix, on_error)
        self.started += 1
        return self._next

    def stop(self, handle: int) -> None:
        if self._watches.pop(handle, None) is not None:
            self.stopped += 1

    def get_current(self, on_fix: OnFix, on_error: OnError, *, timeout_s: float, max_age_s: float):
        if self.current is None:
            on_error("Timeout expired")
            return
        on_fix(self.current)

    def push(self, fix: Fix) -> None:
        self.current = fix
        for on_fix, _ in list(self._watches.values()):
            on_fix(fix)

    def fail(self, message: str) -> None:
        for _, on_error in list(self._watches.values()):
            on_error(message)


class ReplayLocationSource:
    """
    Replays a recorded track on a background thread per watch, keeping the
    recorded spacing between fixes (scaled by `speedup`). A gap longer than
    `timeout_s` is reported as an error and ends that watch.
    """

    def __init__(self, track: Sequence[Fix], *, speedup: float = 1.0, timeout_s: float | None = None):
        self.track = list(track)
        self.speedup = max(speedup, 1e-6)
        self.timeout_s = timeout_s
        self._next = 0
        self._threads: dict[int, tuple[threading.Thread, threading.Event]] = {}
        self._last: tuple[Fix, float] | None = None  # (fix, monotonic delivery time)
        self._lock = threading.Lock()

    def _remember(self, fix: Fix) -> None:
        with self._lock:
            self._last = (fix, time.monotonic())

    def _play(self, stop: threading.Event, on_fix: OnFix, on_error: OnError) -> None:
        prev_ts = None
        for fix in self.track:
            if prev_ts is not None:
                gap = max(fix.timestamp - prev_ts, 0.0) / self.speedup
                if self.timeout_s is not None and gap > self.timeout_s:
                    if not stop.wait(self.timeout_s):
                        on_error("Position acquisition timed out")
                    return
                if stop.wait(gap):
                    return
            if stop.is_set():
                return
            self._remember(fix)
            on_fix(fix)
            prev_ts = fix.timestamp

    def start(self, on_fix: OnFix, on_error: OnError) -> int:
        self._next += 1
        stop = threading.Event()
        t = threading.Thread(
            target=self._play, args=(stop, on_fix, on_error), name=f"replay-watch-{self._next}", daemon=True
        )
        self._threads[self._next] = (t, stop)
        t.start()
        return self._next

    def stop(self, handle: int) -> None:
        entry = self._threads.pop(handle, None)
        if entry is None:
            return
        t, stop = entry
        stop.set()
        if t is not threading.current_thread():
            t.join()

    @property
    def active(self) -> bool:
        return any(t.is_alive() for t, _ in self._threads.values())

    def get_current(self, on_fix: OnFix, on_error: OnError, *, timeout_s: float, max_age_s: float):
        with self._lock:
            last = self._last
        if last is not None and time.monotonic() - last[1] <= max_age_s:
            on_fix(last[0])
        elif self.track:
            self._remember(self.track[0])
            on_fix(self.track[0])
        else:
            on_error(f"No position within {timeout_s:g}s")


# ---- track files ----


class TrackPointModel(BaseModel):
    model_config = ConfigDict(extra="ignore")
    latitude: float
    longitude: float
    timestamp: float | None = None


_track = TypeAdapter(list[TrackPointModel])


def load_track(path: str | FsPath, *, spacing_s: float = 1.0) -> list[Fix]:
    """JSON array of {latitude, longitude, timestamp?}; missing timestamps are spaced evenly."""
    points = _track.validate_python(json.loads(FsPath(path).read_text()))
    fixes = []
    t = 0.0
    for p in points:
        t = p.timestamp if p.timestamp is not None else (t + spacing_s if fixes else 0.0)
        fixes.append(Fix(GeoPoint(p.latitude, p.longitude), t))
    log.debug("loaded %d fixes from %s", len(fixes), path)
    return fixes
