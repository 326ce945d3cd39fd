# tests/services/test_path_provider.py
import json

import pytest
from conftest import ScriptedBackend, make_plan

from elli_nav.domain.entities.geography import Point
from elli_nav.services.path_provider import (
    FAILED_INSTRUCTIONS,
    PARTIAL_INSTRUCTIONS,
    UNAVAILABLE_INSTRUCTIONS,
    PathProvider,
    parse_route_response,
    split_data_url,
)

START = Point(100.0, 100.0)


def answer(points, steps):
    return json.dumps(
        {"path_coordinates": [{"x": x, "y": y} for x, y in points], "step_by_step_instructions": steps}
    )


@pytest.fixture
def target(plan):
    return plan.elevator("E1")


def test_no_backend_is_unavailable_without_a_call(plan, target):
    result = PathProvider(backend=None).request_path(START, target, plan)
    assert result.outcome == "unavailable"
    assert result.path == [START, target.location]
    assert result.instructions == list(UNAVAILABLE_INSTRUCTIONS)


def test_plan_without_image_is_unavailable_without_a_call(target):
    backend = ScriptedBackend(answer([(0, 0), (1, 1)], ["go"]))
    bare = make_plan(image_url="")
    result = PathProvider(backend).request_path(START, target, bare)
    assert result.outcome == "unavailable"
    assert backend.requests == []


def test_request_carries_image_points_and_dimensions(plan, target):
    backend = ScriptedBackend(answer([(100, 100), (700, 500)], ["Walk to the elevator."]))
    PathProvider(backend).request_path(START, target, plan)
    (req,) = backend.requests
    assert req.mime_type == "image/png"
    assert req.image_b64.startswith("iVBOR")
    assert req.start == START
    assert req.target == target.location
    assert (req.dimensions.width, req.dimensions.height) == (800.0, 600.0)


def test_endpoints_are_forced_even_when_backend_drifts(plan, target):
    backend = ScriptedBackend(
        answer([(0, 0), (400, 100), (400, 500), (999, 999)], ["Head along the 'Main Hallway'.", "Turn right."])
    )
    result = PathProvider(backend).request_path(START, target, plan)
    assert result.outcome == "planned"
    assert result.path == [START, Point(400, 100), Point(400, 500), target.location]
    assert result.instructions == ["Head along the 'Main Hallway'.", "Turn right."]


def test_fenced_json_is_accepted(plan, target):
    fenced = "```json\n" + answer([(100, 100), (300, 300), (700, 500)], ["Go."]) + "\n```"
    result = PathProvider(ScriptedBackend(fenced)).request_path(START, target, plan)
    assert result.outcome == "planned"
    assert len(result.path) == 3


def test_single_point_is_partial_and_keeps_instructions(plan, target):
    backend = ScriptedBackend(answer([(5, 5)], ["The elevator is straight ahead."]))
    result = PathProvider(backend).request_path(START, target, plan)
    assert result.outcome == "partial"
    assert result.path == [START, target.location]
    assert result.instructions == ["The elevator is straight ahead."]


def test_no_instructions_is_partial_with_generic_text(plan, target):
    backend = ScriptedBackend(answer([(100, 100), (400, 100), (700, 500)], []))
    result = PathProvider(backend).request_path(START, target, plan)
    assert result.outcome == "partial"
    assert result.path == [START, target.location]
    assert result.instructions == list(PARTIAL_INSTRUCTIONS)


@pytest.mark.parametrize(
    "reply",
    [
        RuntimeError("connection reset"),
        TimeoutError("read timed out"),
        "Sure! Here is your route: go left.",
        json.dumps({"path": [], "steps": []}),
        json.dumps({"path_coordinates": [{"x": "left"}], "step_by_step_instructions": ["x"]}),
        json.dumps([1, 2, 3]),
    ],
)
def test_failures_fall_back_to_straight_line(plan, target, reply):
    result = PathProvider(ScriptedBackend(reply)).request_path(START, target, plan)
    assert result.outcome == "failed"
    assert result.path == [START, target.location]
    assert result.instructions == list(FAILED_INSTRUCTIONS)
    assert result.detail


def test_parse_and_split_helpers():
    parsed = parse_route_response({"path_coordinates": [{"x": 1, "y": 2}], "step_by_step_instructions": ["a"]})
    assert parsed.path_coordinates[0].x == 1.0
    assert split_data_url("") is None
    assert split_data_url("https://example.com/plan.png") is None
    img = split_data_url("data:image/jpeg;base64,AAAA")
    assert (img.mime_type, img.data) == ("image/jpeg", "AAAA")
