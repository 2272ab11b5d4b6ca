"""
tasklist - Core Data Models
Task record, form payloads and error types shared by the store and the web layer
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class TaskListError(Exception):
    """Base error of the application"""
    pass

class ValidationError(TaskListError):
    """Rejected input, reported to the client as 400"""
    pass

# ===== VALIDATION HELPERS =====

def validate_text(text: Optional[str], field_name: str = "Task") -> str:
    """Reject empty task text. The text is stored as given, without stripping."""
    if not isinstance(text, str) or text == "":
        raise ValidationError(f"{field_name} cannot be empty")
    return text

def parse_flag(value: Any) -> bool:
    """Form booleans: only the literal string "true" is true."""
    if isinstance(value, bool):
        return value
    return value == "true"

# ===== CORE MODELS =====

@dataclass
class Task:
    """A single task record"""
    id: int
    text: str
    completed: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Task":
        return cls(id=int(row["id"]), text=row["text"], completed=bool(row["completed"]))

# ===== FORM PAYLOADS =====

class TaskForm(BaseModel):
    """
    Base for the form-encoded bodies posted by the page.

    Field aliases are the wire names, python names are snake_case.
    Flags are converted once here so handlers only see real booleans.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def parse(cls, data: Mapping[str, Any]):
        try:
            return cls.model_validate(dict(data))
        except PydanticValidationError as e:
            raise ValidationError(_describe(e)) from e

class AddTaskForm(TaskForm):
    task: str = ""

    @field_validator("task")
    @classmethod
    def check_task(cls, v):
        if v == "":
            raise ValueError("Task cannot be empty")
        return v

class _ViewForm(TaskForm):
    task_id: int = Field(alias="taskId")
    show_completed: bool = Field(default=False, alias="showCompleted")

    @field_validator("show_completed", mode="before")
    @classmethod
    def check_show_completed(cls, v):
        return parse_flag(v)

class CompleteTaskForm(_ViewForm):
    completed: bool = False

    @field_validator("completed", mode="before")
    @classmethod
    def check_completed(cls, v):
        return parse_flag(v)

class DeleteTaskForm(_ViewForm):
    pass

class EditTaskForm(_ViewForm):
    new_task: str = Field(default="", alias="newTask")

    @field_validator("new_task")
    @classmethod
    def check_new_task(cls, v):
        if v == "":
            raise ValueError("Task cannot be empty")
        return v

def _describe(error: PydanticValidationError) -> str:
    """First pydantic error as a short client-facing message"""
    first = error.errors()[0]
    cause = first.get("ctx", {}).get("error")
    if isinstance(cause, Exception):
        return str(cause)
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"Invalid {location}: {first.get('msg', 'invalid value')}"

# ===== API MODELS =====

class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float
    data: Dict[str, Any] = {}
