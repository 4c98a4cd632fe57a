"""Pydantic schemas for project file validation."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_PREDECESSOR_SEPARATORS = re.compile(r"[,;\s]+")


class TaskSchema(BaseModel):
    """Schema for one task entry, in either AON or AOA form.

    Only the shape is checked here. Value problems such as negative durations
    or malformed edge ids are reported by the network validator so that they
    show up next to each other in one error list.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: str = ""
    duration: float | None = None
    labor_intensity: float | None = Field(default=None, alias="laborIntensity")
    number_of_performers: int | None = Field(default=None, alias="numberOfPerformers")
    predecessors: list[str] = Field(default_factory=list)
    phase: float | None = None
    is_dummy: bool = Field(default=False, alias="isDummy")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id_to_string(cls, v: Any) -> str:
        """YAML reads ``id: 3`` as an int."""
        if v is None:
            raise ValueError("task id is required")
        return str(v).strip()

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name_to_string(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("predecessors", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        """Accept a list of ids or a ``"1, 2; 3"`` style string."""
        if v is None:
            return []
        if isinstance(v, list):
            return [str(item).strip() for item in v]  # type: ignore[misc]
        return [item for item in _PREDECESSOR_SEPARATORS.split(str(v)) if item]

    def to_record(self) -> dict[str, Any]:
        """The task as a plain snake_case record for the planning pipeline."""
        record = self.model_dump(exclude_none=True)
        if not self.predecessors:
            record.pop("predecessors", None)
        if not self.is_dummy:
            record.pop("is_dummy", None)
        return record


class ProjectSchema(BaseModel):
    """Schema for a whole project file."""

    name: str = "Untitled project"
    tasks: list[TaskSchema] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name_to_string(cls, v: Any) -> str:
        return str(v)

    @field_validator("tasks", mode="before")
    @classmethod
    def ensure_task_list(cls, v: Any) -> Any:
        if v is None:
            return []
        return v
