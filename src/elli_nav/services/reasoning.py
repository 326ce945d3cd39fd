# reasoning.py
import os

from openai import OpenAI

from elli_nav.services.path_provider import RouteRequest
from elli_nav.services.prompts import ELEVATOR_DETECTION_PROMPT, ROUTE_SYSTEM_PROMPT, route_prompt


def read_api_key(env_var: str | None = "OPENAI_API_KEY", file_path: str | None = None) -> str | None:
    """Key from the environment first, then from a key file; None when neither is set."""
    if env_var and os.environ.get(env_var):
        return os.environ[env_var].strip()
    if file_path:
        expanded = os.path.expanduser(file_path)
        if os.path.exists(expanded):
            with open(expanded) as fh:
                return fh.read().strip() or None
    return None


class OpenAIReasoningBackend:
    """
    Vision model behind the path provider and elevator detection.

    Returns the raw message text; validation belongs to the callers. Transport
    errors and timeouts propagate as openai exceptions.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        timeout_s: float = 30.0,
        temperature: float = 0.2,
        max_tokens: int = 1000,
        client: OpenAI | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=api_key, timeout=timeout_s, max_retries=0)

    def _image_part(self, mime_type: str, data: str) -> dict:
        return {
            "type": "image_url",
            "image_url": {"url": f"data:{mime_type};base64,{data}", "detail": "high"},
        }

    def _complete(self, messages: list[dict]) -> str:
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )
        content = completion.choices[0].message.content
        if content is None:
            raise ValueError("empty completion")
        return content.strip()

    def plan_route(self, request: RouteRequest) -> str:
        messages = [
            {"role": "system", "content": ROUTE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": route_prompt(request.start, request.target, request.dimensions)},
                    self._image_part(request.mime_type, request.image_b64),
                ],
            },
        ]
        return self._complete(messages)

    def detect_elevators(self, image_b64: str, mime_type: str) -> str:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": ELEVATOR_DETECTION_PROMPT},
                    self._image_part(mime_type, image_b64),
                ],
            }
        ]
        return self._complete(messages)
