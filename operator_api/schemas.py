from __future__ import annotations

import datetime as dt
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, Field

from consistency.slots import parse_slot


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _valid_slot(value: str) -> str:
    if parse_slot(value) is None:
        raise ValueError("invalid time slot, expected HH:MM-HH:MM")
    return value


Text = Annotated[str, AfterValidator(_not_blank)]
TimeSlot = Annotated[str, AfterValidator(_valid_slot)]


class TodoCreate(BaseModel):
    text: Text
    priority: str = "medium"
    category: str = "personal"


class TodoPatch(BaseModel):
    text: Optional[Text] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    completed: Optional[bool] = None


class HabitCreate(BaseModel):
    name: Text
    category: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    target_frequency: int = Field(1, ge=1)


class DsaCreate(BaseModel):
    problem_name: Optional[str] = None
    difficulty: Optional[str] = None
    topic: Optional[str] = None


class FocusCreate(BaseModel):
    session_type: Text = "pomodoro"
    duration_minutes: int = Field(25, gt=0)
    completed: bool = True
    notes: Optional[str] = None


class ReflectionCreate(BaseModel):
    reflection_type: Text = "night"
    date: Optional[dt.date] = None
    content: Any = None
    mood_score: Optional[int] = Field(None, ge=1, le=10)


class NoteCreate(BaseModel):
    content: Text


class ProjectTaskCreate(BaseModel):
    project_name: Text
    task_title: Text
    description: Optional[str] = None
    status: str = "todo"
    priority: str = "medium"
    due_date: Optional[dt.date] = None


class ProjectTaskPatch(BaseModel):
    task_title: Optional[Text] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[dt.date] = None


class BlockCreate(BaseModel):
    time_slot: TimeSlot
    task: Text
    emoji: Optional[str] = None
    block_type: Optional[str] = None
    date: Optional[dt.date] = None


class BlockPatch(BaseModel):
    time_slot: Optional[TimeSlot] = None
    task: Optional[Text] = None
    emoji: Optional[str] = None
    block_type: Optional[str] = None
    completed: Optional[bool] = None
    is_active: Optional[bool] = None


class StoragePayload(BaseModel):
    value: Any = None
