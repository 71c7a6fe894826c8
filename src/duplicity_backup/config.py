from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError
from .executor import DEFAULT_BINARY


class SecretRef(BaseModel):
    """Reference to a secret stored in an environment variable or file."""

    env: Optional[str] = Field(default=None, description="Environment variable name.")
    file: Optional[Path] = Field(default=None, description="Path to a file containing the secret.")

    @model_validator(mode="after")
    def _require_source(self) -> "SecretRef":
        if not self.env and not self.file:
            raise ValueError("Either env or file must be provided for a secret reference.")
        return self

    def resolve(self) -> Optional[str]:
        if self.env:
            value = os.getenv(self.env)
            if value:
                return value
        if self.file:
            file_path = Path(self.file).expanduser()
            if file_path.exists():
                return file_path.read_text(encoding="utf-8").strip()
        return None


# --- Job configuration -------------------------------------------------------


class JobConfig(BaseModel):
    name: str
    source: Path
    destination: Path
    exclude: List[str] = Field(default_factory=list, description="Subdirectories of source to skip.")
    full: bool = False
    verify_after: bool = False
    compare_data: bool = True
    passphrase: Optional[SecretRef] = None
    options: Dict[str, bool] = Field(default_factory=dict, description="Option flag toggles, e.g. --dry-run.")

    @field_validator("source", "destination")
    @classmethod
    def _expand_path(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("exclude")
    @classmethod
    def _relative_excludes(cls, value: List[str]) -> List[str]:
        for entry in value:
            if not entry.strip():
                raise ValueError("Excluded subdirectories must not be empty.")
            if PurePosixPath(entry).is_absolute():
                raise ValueError(f"Excluded subdirectory '{entry}' must be relative to source.")
        return value


class CoreConfig(BaseModel):
    jobs: List[JobConfig]
    binary: str = DEFAULT_BINARY
    timeout_seconds: Optional[float] = None

    @field_validator("jobs")
    @classmethod
    def _require_jobs(cls, value: List[JobConfig]) -> List[JobConfig]:
        if not value:
            raise ValueError("At least one job must be configured.")
        names = [job.name for job in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate job name(s): {', '.join(duplicates)}")
        return value

    @field_validator("timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("timeout_seconds must be positive.")
        return value

    def get_job(self, name: str) -> JobConfig:
        for job in self.jobs:
            if job.name == name:
                return job
        raise ConfigurationError(f"Unknown job: {name}")


def load_config(path: Path) -> CoreConfig:
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    try:
        return CoreConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
