# tests/sim/test_kernel.py
import threading
from dataclasses import dataclass

import pytest

from elli_nav.sim.event import BaseEvent
from elli_nav.sim.hooks import NoopHooks
from elli_nav.sim.kernel import Kernel


# ---- demo domain events ----
@dataclass(order=True)
class Ping(BaseEvent):
    n: int = 0


@dataclass(order=True)
class Pong(BaseEvent):
    n: int = 0


@dataclass(order=True)
class Timer(BaseEvent):
    label: str = ""


# ---- demo handlers ----
def handle_ping(ev: Ping):
    out: list[BaseEvent] = [Pong(t=ev.t, n=ev.n)]
    if ev.n > 0:
        out.append(Ping(t=ev.t + 1.0, n=ev.n - 1))
    return out


def handle_pong(ev: Pong):
    return [Timer(t=ev.t + 0.5, label=f"after pong {ev.n}")]


def handle_timer(ev: Timer):
    return []


# --- test hook that records dispatch order & times ---
class TraceHooks(NoopHooks):
    def __init__(self):
        self.trace = []

    def dispatch_start(self, ev, *, seq, qsize, handlers):
        self.trace.append((ev.t, type(ev).__name__))


def test_dispatch_order_and_fan_out():
    hooks = TraceHooks()
    k = Kernel(hooks=hooks)
    k.on(Ping, handle_ping)
    k.on(Pong, handle_pong)
    k.on(Timer, handle_timer)

    k.post(Ping(t=0.0, n=2))
    processed = k.run()
    assert processed == 9
    names = [name for _, name in hooks.trace]
    times = [t for t, _ in hooks.trace]
    assert names == ["Ping", "Pong", "Timer", "Ping", "Pong", "Timer", "Ping", "Pong", "Timer"]
    assert times == [0.0, 0.0, 0.5, 1.0, 1.0, 1.5, 2.0, 2.0, 2.5]
    assert k.now == 2.5


def test_fifo_tie_break_and_max_events():
    k = Kernel()
    seen: list[str] = []
    k.on(Ping, lambda ev: seen.append("A"))
    k.on(Ping, lambda ev: seen.append("B"))
    k.post(Ping(t=5.0, n=0))
    k.post(Ping(t=5.0, n=0))
    k.run()
    assert seen == ["A", "B", "A", "B"]

    k3 = Kernel()
    k3.on(Ping, handle_ping)
    k3.post(Ping(t=0.0, n=10))
    assert k3.run(max_events=1) == 1
    assert k3.now == 0.0
    assert k3.pending == 2  # Pong + next Ping


def test_handler_scheduling_in_the_past_raises():
    k = Kernel()
    k.on(Ping, lambda ev: [Ping(t=ev.t - 1.0, n=0)])
    k.post(Ping(t=1.0, n=0))
    with pytest.raises(RuntimeError):
        k.run()


def test_lagging_posts_are_not_reordered_before_now():
    hooks = TraceHooks()
    k = Kernel(hooks=hooks)
    k.on(Timer, handle_timer)
    k.post(Timer(t=10.0, label="late clock"))
    k.run()
    k.post(Timer(t=3.0, label="producer on a slower clock"))
    assert k.run() == 1
    assert k.now == 10.0


def test_post_from_another_thread_wakes_wait():
    k = Kernel()
    got = []
    k.on(Ping, lambda ev: got.append(ev.n))

    t = threading.Thread(target=lambda: k.post(Ping(t=0.0, n=7)))
    t.start()
    assert k.wait(timeout=2.0)
    t.join()
    k.run()
    assert got == [7]
    assert not k.wait(timeout=0.01)


def test_run_until_idle_stops_when_producers_are_done():
    k = Kernel()
    got = []
    k.on(Ping, lambda ev: got.append(ev.n))
    remaining = [3]

    def producer():
        for n in range(remaining[0]):
            k.post(Ping(t=0.0, n=n))
        remaining[0] = 0

    t = threading.Thread(target=producer)
    t.start()
    t.join()
    k.run_until_idle(0.5, still_busy=lambda: remaining[0] > 0)
    assert got == [0, 1, 2]


def test_run_until_idle_applies_a_post_made_just_before_going_idle():
    k = Kernel()
    got = []
    k.on(Ping, lambda ev: got.append(ev.n))
    late = [42]

    def still_busy():
        # the worker posts its result, then reports idle
        if late:
            k.post(Ping(t=0.0, n=late.pop()))
        return False

    k.run_until_idle(0.5, still_busy=still_busy)
    assert got == [42]
    assert k.pending == 0
