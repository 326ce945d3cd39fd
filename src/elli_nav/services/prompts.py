# prompts.py

ROUTE_SYSTEM_PROMPT = """
You are an indoor navigation assistant. You look at a floor plan image and
produce a walking route plus short directions for a person on foot.
Answer with a single JSON object and nothing else.
""".strip()


def route_prompt(start, target, dimensions) -> str:
    sx, sy = round(start.x), round(start.y)
    tx, ty = round(target.x), round(target.y)
    mx = round((start.x + target.x) / 2)
    return f"""
The user stands at pixel ({sx}, {sy}) and wants to reach the elevator at pixel ({tx}, {ty}).
The image is {round(dimensions.width)}px wide and {round(dimensions.height)}px high.

1. "path_coordinates": an ordered list of {{"x": number, "y": number}} pixel points.
   - Solid lines on the plan are walls. The route must not cross them.
   - Do not cut room corners or obstacles; keep the clearance a walking person needs.
   - Prefer hallways and open areas; only cross a line where it is clearly a doorway.
   - The first point is the user's position, the last point is the elevator.
   - Use straight segments with an intermediate point at every turn.
   - If no clear route can be found, return just the start and end points.

2. "step_by_step_instructions": 2-5 short turn-by-turn directions that follow the route.
   - Refer to landmarks visible on the plan (room names, areas, symbols) in Title Case,
     e.g. 'Turn left after "Office Room 101".'
   - Do not use compass directions unless the plan marks them.
   - For a straight line, one sentence such as "Proceed directly towards the elevator." is enough.

Respond ONLY with JSON of this shape, no markdown:
{{
  "path_coordinates": [
    {{"x": {sx}, "y": {sy}}},
    {{"x": {mx}, "y": {sy}}},
    {{"x": {mx}, "y": {ty}}},
    {{"x": {tx}, "y": {ty}}}
  ],
  "step_by_step_instructions": [
    "Proceed forward along the current corridor.",
    "Turn right at the 'Main Hallway'.",
    "The 'Elevator Group A' will be on your left."
  ]
}}
""".strip()


ELEVATOR_DETECTION_PROMPT = """
Find every elevator on this floor plan image.
Typical symbols: a rectangle with an X inside, or two adjacent rectangles with
opposing arrows. Areas labeled "ELEVATOR", "ELEV" or "LIFT" (any case) count too.

For each elevator report:
- "x_percent": horizontal position as a percentage of the image width, from the left edge
- "y_percent": vertical position as a percentage of the image height, from the top edge
- "description": a few words on the elevator or its surroundings

Respond ONLY with JSON of the form {"elevators": [{"x_percent": 15.0, "y_percent": 30.5, "description": "Elevator near main entrance"}]}.
If nothing is clearly an elevator return {"elevators": []}.
""".strip()
