# src/elli_nav/io/config.py
from pathlib import Path

import yaml

from elli_nav.config.models import AppModel


def load_config(path: str | Path) -> AppModel:
    with open(Path(path).expanduser()) as fh:
        raw = yaml.safe_load(fh) or {}
    return AppModel.model_validate(raw)
