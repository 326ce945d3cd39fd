# main.py
import argparse

from elli_nav.app.build import build
from elli_nav.domain.entities.geography import Point
from elli_nav.io.config import load_config
from elli_nav.services.location import ReplayLocationSource, load_track


def run(config_path: str, plan_path: str, track_path: str, *, tap=None, elevator=None, speedup=10.0):
    cfg = load_config(config_path)
    track = load_track(track_path)
    location = ReplayLocationSource(track, speedup=speedup, timeout_s=cfg.watch.watch_timeout_s)

    app = build(cfg, location=location)
    nav = app.coordinator
    app.open_plan(plan_path)

    # Either tap a starting point (targets the nearest elevator) or pick one explicitly
    if tap is not None:
        nav.set_manual_location(Point(*tap))
    if elevator is not None:
        nav.select_elevator(elevator)

    nav.run_until_idle(timeout=cfg.watch.watch_timeout_s)
    for i, line in enumerate(nav.state.instructions or [], start=1):
        print(f"{i}. {line}")
    print(nav.status)
    app.close()


if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Replay a recorded walk against a floor plan.")
    p.add_argument("config")
    p.add_argument("plan")
    p.add_argument("track")
    p.add_argument("--tap", nargs=2, type=float, metavar=("X", "Y"))
    p.add_argument("--elevator")
    p.add_argument("--speedup", type=float, default=10.0)
    a = p.parse_args()
    run(a.config, a.plan, a.track, tap=a.tap, elevator=a.elevator, speedup=a.speedup)
