# sim/kernel.py

import heapq
import queue
import time
from collections.abc import Callable, Iterable

from .event import BaseEvent
from .hooks import KernelHooks, NoopHooks

Handler = Callable[[BaseEvent], Iterable[BaseEvent] | None]


class Kernel:
    """
    Single-threaded dispatcher for navigation events.

    Handlers run on whichever thread calls `run()` / `run_until_idle()`; that
    thread is the only writer of navigation state. Other threads (path
    workers, location watches) hand events over with `post()`, which only
    touches a thread-safe inbox.
    """

    def __init__(self, hooks: KernelHooks | None = None):
        self._t = 0.0
        self._q: list[tuple[float, int, BaseEvent]] = []
        self._seq = 0
        self._subs: dict[type[BaseEvent], list[Handler]] = {}
        self._hooks = hooks or NoopHooks()
        self._inbox: queue.SimpleQueue[BaseEvent] = queue.SimpleQueue()

    @property
    def now(self) -> float:
        return self._t

    @property
    def pending(self) -> int:
        return len(self._q) + self._inbox.qsize()

    def on(self, etype: type[BaseEvent], handler: Handler) -> None:
        self._subs.setdefault(etype, []).append(handler)

    def post(self, ev: BaseEvent) -> None:
        """Thread-safe hand-over; the event is scheduled on the next run."""
        self._inbox.put(ev)

    def schedule(self, ev: BaseEvent) -> None:
        self._seq += 1
        # producers on other clocks may lag behind; never reorder before now
        heapq.heappush(self._q, (max(ev.t, self._t), self._seq, ev))
        self._hooks.schedule(ev, now=self._t, qsize=len(self._q))

    def _drain_inbox(self) -> None:
        while True:
            try:
                ev = self._inbox.get_nowait()
            except queue.Empty:
                return
            self.schedule(ev)

    def run(self, max_events: int | None = None) -> int:
        t0 = time.perf_counter()
        self._drain_inbox()
        self._hooks.run_start(max_events=max_events, qsize=len(self._q))
        processed = 0
        while self._q:
            t, _, ev = heapq.heappop(self._q)
            self._t = t
            handlers = self._subs.get(type(ev), ())
            t1 = time.perf_counter()
            self._hooks.dispatch_start(
                ev, seq=self._seq, qsize=len(self._q), handlers=len(handlers)
            )
            total_out = 0
            for h in handlers:
                out = h(ev) or ()
                for nxt in out:
                    if nxt.t + 1e-12 < self._t:
                        self._hooks.error(
                            ev,
                            reason="scheduled_past",
                            scheduled_t=nxt.t,
                            nxt_type=type(nxt).__name__,
                        )
                        raise RuntimeError(
                            f"handler scheduled past event at {nxt.t} < now {self._t}"
                        )
                    self.schedule(nxt)
                    total_out += 1
            ms = (time.perf_counter() - t1) * 1000
            self._hooks.dispatch_end(ev, out_events=total_out, ms=ms)
            processed += 1
            if max_events and processed >= max_events:
                break
            self._drain_inbox()
        self._hooks.run_end(
            processed=processed,
            last_t=self._t,
            qsize=len(self._q),
            wall_ms=(time.perf_counter() - t0) * 1000,
        )
        return processed

    def wait(self, timeout: float | None = None) -> bool:
        """Block until another thread posts an event (or timeout). True if one arrived."""
        try:
            ev = self._inbox.get(timeout=timeout)
        except queue.Empty:
            return False
        self.schedule(ev)
        return True

    def run_until_idle(self, timeout: float, *, still_busy: Callable[[], bool]) -> int:
        """
        Keep dispatching while `still_busy()` says producers owe us events,
        giving up after `timeout` seconds without a new event.
        """
        processed = self.run()
        # a producer may post and then go idle between our drain and the busy check
        while still_busy() or self.pending:
            if not self.pending and not self.wait(timeout):
                break
            processed += self.run()
        return processed
