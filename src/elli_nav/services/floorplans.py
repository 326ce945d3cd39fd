# elli_nav/services/floorplans.py
import base64
import io
import json
import logging
import mimetypes
import time
from pathlib import Path as FsPath

from PIL import Image
from pydantic import BaseModel, ConfigDict, TypeAdapter

from elli_nav.domain.entities.floorplan import Elevator, FloorPlan
from elli_nav.domain.entities.geography import Dimensions, Point
from elli_nav.services.path_provider import strip_fence

log = logging.getLogger(__name__)


class ElevatorDetection(BaseModel):
    model_config = ConfigDict(extra="ignore")
    x_percent: float
    y_percent: float
    description: str = ""


_detections = TypeAdapter(list[ElevatorDetection])


def parse_detections(raw: str | list | dict) -> list[ElevatorDetection]:
    if isinstance(raw, str):
        raw = json.loads(strip_fence(raw))
    if isinstance(raw, dict):
        # json_object mode forces a wrapper object
        if "elevators" not in raw:
            raise ValueError(f"detection answer has no 'elevators' list: {sorted(raw)}")
        raw = raw["elevators"]
    return _detections.validate_python(raw)


def elevators_from_detections(detections: list[ElevatorDetection], dims: Dimensions) -> list[Elevator]:
    out = []
    for n, d in enumerate(detections, start=1):
        x = min(max(d.x_percent, 0.0), 100.0) / 100 * dims.width
        y = min(max(d.y_percent, 0.0), 100.0) / 100 * dims.height
        out.append(
            Elevator(
                id=f"elevator-{n}",
                name=d.description.strip() or f"Detected Elevator {n}",
                location=Point(x, y),
                floor="N/A",
            )
        )
    return out


def read_image(path: str | FsPath) -> tuple[str, Dimensions]:
    """Return (data URL, pixel dimensions) for an image file."""
    path = FsPath(path)
    blob = path.read_bytes()
    with Image.open(io.BytesIO(blob)) as img:
        width, height = img.size
        mime = Image.MIME.get(img.format or "") or mimetypes.guess_type(path.name)[0] or "image/png"
    data_url = f"data:{mime};base64,{base64.b64encode(blob).decode('ascii')}"
    return data_url, Dimensions(float(width), float(height))


def load_floor_plan(path: str | FsPath, *, detector=None, name: str | None = None) -> tuple[FloorPlan, str]:
    """
    Build a FloorPlan from an image file and, when a detector backend is given,
    populate its elevators. Detection trouble never blocks loading: the plan
    comes back without elevators and the returned status says why.
    """
    path = FsPath(path)
    name = name or path.name
    image_url, dims = read_image(path)
    plan_id = f"custom-{int(time.time() * 1000)}"

    elevators: list[Elevator] = []
    if detector is None:
        status = f"Loaded '{name}'. Elevator detection skipped (no AI backend)."
    else:
        mime, data = image_url[len("data:") :].split(";base64,", 1)
        try:
            elevators = elevators_from_detections(parse_detections(detector.detect_elevators(data, mime)), dims)
        except ValueError as exc:
            log.warning("elevator detection returned malformed data for %s: %s", name, exc)
            status = f"Error during AI analysis for '{name}'. Plan loaded without elevators."
        except Exception as exc:
            log.warning("elevator detection failed for %s: %s", name, exc)
            status = f"Error during AI analysis for '{name}'. Plan loaded without elevators."
        else:
            if elevators:
                status = f"AI analysis complete for '{name}'. Found {len(elevators)} elevator(s)."
            else:
                status = f"AI analysis complete for '{name}'. No elevators detected."

    plan = FloorPlan(id=plan_id, name=name, image_url=image_url, dimensions=dims, elevators=elevators)
    return plan, status
