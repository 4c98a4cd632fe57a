"""Configuration for conversion and workload analysis.

Settings live in an optional ``arcnet_config.yaml``::

    conversion:
      hours_per_day: 6
      create_sink: true
    workload:
      resource_limit: 10

``workload.hours_per_day`` defaults to ``conversion.hours_per_day`` so load
percentages use the same working day that produced the durations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

DEFAULT_HOURS_PER_DAY = 6.0
CONFIG_FILE_NAME = "arcnet_config.yaml"


class ConversionOptions(BaseModel):
    """Options for AON to AOA conversion."""

    hours_per_day: float = Field(default=DEFAULT_HOURS_PER_DAY, gt=0)
    create_sink: bool = True  # Join all terminal events into one finish event


class WorkloadConfig(BaseModel):
    """Options for the resource load profile."""

    hours_per_day: float | None = Field(default=None, gt=0)  # None: same as conversion
    resource_limit: int | None = Field(default=None, ge=1)  # Max performers available at once


class ArcnetConfig(BaseModel):
    """Top-level configuration."""

    conversion: ConversionOptions = ConversionOptions()
    workload: WorkloadConfig = WorkloadConfig()

    @model_validator(mode="after")
    def share_working_day(self) -> ArcnetConfig:
        if self.workload.hours_per_day is None:
            self.workload = self.workload.model_copy(
                update={"hours_per_day": self.conversion.hours_per_day}
            )
        return self


def load_config(config_path: Path | str) -> ArcnetConfig:
    """Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the file is empty or its content is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open(encoding="utf-8") as f:
        data: Any = yaml.safe_load(f)

    if not data:
        raise ValueError("Empty configuration file")
    if not isinstance(data, dict):
        raise ValueError("Configuration must be a mapping at the root level")

    try:
        return ArcnetConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}") from e
