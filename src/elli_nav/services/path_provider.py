# elli_nav/services/path_provider.py
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict

from elli_nav.domain.entities.floorplan import Elevator, FloorPlan
from elli_nav.domain.entities.geography import Dimensions, Path, Point
from elli_nav.domain.geometry import anchor_path, straight_line_path

log = logging.getLogger(__name__)

Outcome = Literal["planned", "partial", "failed", "unavailable"]

UNAVAILABLE_INSTRUCTIONS = ("AI pathfinding is currently unavailable.",)
PARTIAL_INSTRUCTIONS = (
    "AI was unable to determine a detailed path.",
    "A straight line to the elevator is shown on the map.",
)
FAILED_INSTRUCTIONS = (
    "AI pathfinding system encountered an error.",
    "A straight line to the elevator is shown on the map.",
    "Please use visual cues on the floor plan to navigate.",
)

_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


@dataclass(frozen=True)
class PathResult:
    path: Path
    instructions: list[str]
    outcome: Outcome
    detail: str | None = None


@dataclass(frozen=True)
class RouteRequest:
    image_b64: str
    mime_type: str
    start: Point
    target: Point
    dimensions: Dimensions


@dataclass(frozen=True)
class PlanImage:
    mime_type: str
    data: str = field(repr=False)  # base64 payload


# ---- wire shape of the backend answer ----


class _PixelModel(BaseModel):
    model_config = ConfigDict(extra="ignore")
    x: float
    y: float


class RouteResponseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")
    path_coordinates: list[_PixelModel]
    step_by_step_instructions: list[str]


def split_data_url(url: str) -> PlanImage | None:
    """`data:image/png;base64,AAAA` -> PlanImage; None when there is no usable payload."""
    if not url or not url.startswith("data:") or "," not in url:
        return None
    header, data = url.split(",", 1)
    mime = header[len("data:") :].split(";", 1)[0]
    if not mime or not data:
        return None
    return PlanImage(mime_type=mime, data=data)


def strip_fence(text: str) -> str:
    text = text.strip()
    m = _FENCE.match(text)
    return m.group(1).strip() if m and m.group(1) else text


def parse_route_response(raw: str | bytes | dict) -> RouteResponseModel:
    """Raises ValueError (json or pydantic) on free text or the wrong shape."""
    if isinstance(raw, dict):
        return RouteResponseModel.model_validate(raw)
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return RouteResponseModel.model_validate(json.loads(strip_fence(raw)))


class PathProvider:
    """
    Turns (start, target, plan) into a usable path, whatever the backend does.

    The provider never mutates navigation state and never raises for backend
    trouble: an unconfigured backend, a missing image, a transport error or a
    malformed answer all come back as a straight-line PathResult.
    """

    def __init__(self, backend=None):
        self.backend = backend

    @staticmethod
    def fallback(start: Point, target: Elevator, outcome: Outcome, detail: str | None = None):
        lines = {
            "unavailable": UNAVAILABLE_INSTRUCTIONS,
            "partial": PARTIAL_INSTRUCTIONS,
            "failed": FAILED_INSTRUCTIONS,
        }.get(outcome, FAILED_INSTRUCTIONS)
        return PathResult(
            path=straight_line_path(start, target.location),
            instructions=list(lines),
            outcome=outcome,
            detail=detail,
        )

    def request_path(self, start: Point, target: Elevator, plan: FloorPlan) -> PathResult:
        image = split_data_url(plan.image_url)
        if self.backend is None or image is None:
            reason = "backend not configured" if self.backend is None else "plan has no image data"
            return self.fallback(start, target, "unavailable", detail=reason)

        request = RouteRequest(
            image_b64=image.data,
            mime_type=image.mime_type,
            start=start,
            target=target.location,
            dimensions=plan.dimensions,
        )
        try:
            raw = self.backend.plan_route(request)
            response = parse_route_response(raw)
        except ValueError as exc:
            log.warning("route response rejected for %s: %s", target.id, exc)
            return self.fallback(start, target, "failed", detail=f"malformed response: {exc}")
        except Exception as exc:
            log.warning("route request failed for %s: %s", target.id, exc)
            return self.fallback(start, target, "failed", detail=str(exc))

        coords = [Point(p.x, p.y) for p in response.path_coordinates]
        instructions = [s for s in response.step_by_step_instructions if s.strip()]
        if len(coords) < 2 or not instructions:
            return PathResult(
                path=straight_line_path(start, target.location),
                instructions=instructions or list(PARTIAL_INSTRUCTIONS),
                outcome="partial",
                detail=f"{len(coords)} point(s), {len(instructions)} instruction(s)",
            )
        return PathResult(
            path=anchor_path(coords, start, target.location),
            instructions=instructions,
            outcome="planned",
        )
