"""Project file loading and writing, with config discovery."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .config import CONFIG_FILE_NAME, ArcnetConfig, load_config
from .exceptions import ParseError
from .logger import get_logger
from .models import AoaTask
from .schemas import ProjectSchema

logger = get_logger()


@dataclass
class Project:
    """A loaded project: its name and raw task records."""

    name: str
    tasks: list[dict[str, Any]]


def discover_config(
    project_path: Path | str | None = None,
    config_path: Path | None = None,
) -> ArcnetConfig:
    """Find and load the configuration for a project file.

    An explicit config_path (the CLI --config option) must exist. Otherwise
    arcnet_config.yaml is looked up beside the project file, then in the
    current directory, falling back to the defaults.

    Raises:
        FileNotFoundError: If config_path is given but does not exist
    """
    if config_path is not None:
        return load_config(config_path)

    # Project directory
    if project_path is not None:
        dir_config = Path(project_path).parent / CONFIG_FILE_NAME
        if dir_config.exists():
            return load_config(dir_config)

    # Current directory
    cwd_config = Path(CONFIG_FILE_NAME)
    if cwd_config.exists():
        return load_config(cwd_config)

    return ArcnetConfig()


def load_project(path: Path | str) -> Project:
    """Parse a project file (YAML, or JSON as its subset).

    Raises:
        ParseError: If the file is missing, unreadable or does not match the schema
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"File not found: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("Project file must contain a mapping at the root level")

    try:
        schema = ProjectSchema.model_validate(data)
    except PydanticValidationError as e:
        raise ParseError(f"Invalid project file {path}: {e}") from e

    logger.checks(f"Loaded {len(schema.tasks)} tasks from {path}")
    return Project(name=schema.name, tasks=[task.to_record() for task in schema.tasks])


def write_tasks(path: Path | str, name: str, tasks: Sequence[AoaTask]) -> None:
    """Write an AOA task list as a project file that load_project reads back."""
    data = {"name": name, "tasks": [task.to_record() for task in tasks]}
    with Path(path).open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
