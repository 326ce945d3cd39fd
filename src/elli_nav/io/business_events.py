# elli_nav/io/business_events.py

from dataclasses import dataclass
from typing import Literal


# Base type for journal records (not scheduled in the kernel!)
@dataclass
class BizEvent:
    run_id: str
    t: float
    name: str  # stable event name


@dataclass
class StatusChangedBiz(BizEvent):
    status: str
    phase: str


@dataclass
class PathSettledBiz(BizEvent):
    request_id: int
    target_id: str
    outcome: Literal["planned", "partial", "failed", "unavailable"]
    points: int
    instructions: int


@dataclass
class ArrivedBiz(BizEvent):
    elevator_id: str
    distance_px: float
