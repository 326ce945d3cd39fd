from dataclasses import dataclass, field

from elli_nav.domain.entities.geography import Dimensions, Point


@dataclass(frozen=True)
class Elevator:
    id: str
    name: str
    location: Point
    floor: int | str = "N/A"


@dataclass(frozen=True)
class FloorPlan:
    id: str
    name: str
    image_url: str  # data:<mime>;base64,<payload> or "" when no image is attached
    dimensions: Dimensions
    elevators: tuple[Elevator, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # accept any iterable but keep insertion order
        object.__setattr__(self, "elevators", tuple(self.elevators))
        seen: set[str] = set()
        for e in self.elevators:
            if e.id in seen:
                raise ValueError(f"duplicate elevator id {e.id!r} in plan {self.id!r}")
            seen.add(e.id)

    def elevator(self, elevator_id: str) -> Elevator | None:
        for e in self.elevators:
            if e.id == elevator_id:
                return e
        return None
