"""Configuration models and loading for hookwire."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from hookwire.models import ExecutionOrder

CONFIG_FILENAME = ".hookwire.yaml"


class RegistryConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    order: ExecutionOrder = ExecutionOrder.LIFO
    suspended_hooks: list[int] = Field(default_factory=list)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML at {path} must decode to a mapping")
    return data


def load_effective_config(
    path: str | Path,
    system_defaults: dict[str, Any] | None = None,
    runtime_override: dict[str, Any] | None = None,
) -> RegistryConfig:
    """Load config with precedence runtime > .hookwire.yaml > system."""
    file_config = _load_yaml(Path(path) / CONFIG_FILENAME)

    merged: dict[str, Any] = {}
    for layer in (system_defaults, file_config, runtime_override):
        if layer:
            merged.update(layer)

    return RegistryConfig.model_validate(merged)
