# elli_nav/runtime/services_factory.py
import logging

from elli_nav.app.protocols import PathRunner, ReasoningBackend
from elli_nav.config.models import (
    DisabledReasoningModel,
    InlineRunnerModel,
    OpenAIReasoningModel,
    ReasoningUnion,
    RunnerUnion,
    ThreadRunnerModel,
)
from elli_nav.services.reasoning import OpenAIReasoningBackend, read_api_key
from elli_nav.services.runners import InlineRunner, ThreadRunner

log = logging.getLogger(__name__)


def make_reasoning_backend(cfg: ReasoningUnion) -> ReasoningBackend | None:
    """None means "not configured": the path provider then answers with fallbacks."""
    if isinstance(cfg, OpenAIReasoningModel):
        api_key = read_api_key(cfg.api_key_env, cfg.api_key_file)
        if not api_key:
            log.warning("no API key found (%s / %s); AI features unavailable", cfg.api_key_env, cfg.api_key_file)
            return None
        return OpenAIReasoningBackend(
            api_key=api_key,
            model=cfg.model,
            timeout_s=cfg.timeout_s,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
        )
    elif isinstance(cfg, DisabledReasoningModel):
        return None
    else:
        raise TypeError(cfg)


def make_runner(cfg: RunnerUnion) -> PathRunner:
    if isinstance(cfg, InlineRunnerModel):
        return InlineRunner()
    elif isinstance(cfg, ThreadRunnerModel):
        return ThreadRunner(max_workers=cfg.max_workers)
    else:
        raise TypeError(cfg)
