from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from expandvars import expandvars
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CONFIG_NAME = "modelator.yaml"

Workers = Literal["auto"] | int


class TlcOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")
    java: str = "java"
    jar_dir: Path = Path("~/.modelator")
    workers: Workers = "auto"
    timeout: int = 600
    log: Path = Path("tlc.log")

    @field_validator("workers")
    @classmethod
    def workers_must_be_positive(cls, v: Workers) -> Workers:
        if isinstance(v, int) and v < 1:
            raise ValueError("workers must be 'auto' or a positive integer")
        return v

    @field_validator("timeout")
    @classmethod
    def timeout_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @property
    def tla2tools_jar(self) -> Path:
        return self.jar_dir.expanduser() / "tla2tools.jar"

    @property
    def community_modules_jar(self) -> Path:
        return self.jar_dir.expanduser() / "CommunityModules.jar"

    def workers_arg(self) -> str:
        return str(self.workers)


class ModelatorConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    tlc: TlcOptions = Field(default_factory=TlcOptions)


def _expand(raw: Any) -> Any:
    """Expand ${VAR} and ${VAR:-default} in every string of a YAML tree."""
    if isinstance(raw, str):
        return expandvars(raw)
    if isinstance(raw, dict):
        return {key: _expand(value) for key, value in raw.items()}
    if isinstance(raw, list):
        return [_expand(item) for item in raw]
    return raw


def load_config(path: Path) -> ModelatorConfig:
    """Load and validate a modelator config from a YAML file."""
    config_dir = path.parent.resolve()

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    config = ModelatorConfig(**_expand(raw))

    # Resolve relative paths relative to config file location
    tlc = config.tlc
    jar_dir = tlc.jar_dir.expanduser()
    tlc.jar_dir = jar_dir if jar_dir.is_absolute() else (config_dir / jar_dir).resolve()
    if not tlc.log.is_absolute():
        tlc.log = (config_dir / tlc.log).resolve()

    return config
