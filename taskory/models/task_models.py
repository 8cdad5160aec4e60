"""
Request models for task endpoints.
"""
from datetime import date
from typing import Optional, List, Literal

from pydantic import BaseModel, Field, field_validator

Priority = Literal["low", "medium", "high"]


class TaskCreate(BaseModel):
    """Fields accepted when creating a task."""
    project_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    status_id: Optional[int] = None
    milestone_id: Optional[int] = None
    assignee_id: Optional[int] = None
    priority: Priority = "medium"
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    position: Optional[int] = Field(None, ge=0)


class TaskUpdate(BaseModel):
    """
    Partial task update.

    Only fields present in the request body are applied; an explicit null
    clears a nullable field.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = None
    status_id: Optional[int] = None
    milestone_id: Optional[int] = None
    assignee_id: Optional[int] = None
    priority: Optional[Priority] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    due_date: Optional[date] = None

    @field_validator("title", "priority")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v

    def changes(self) -> dict:
        """Fields the caller actually sent, dates as ISO strings."""
        return self.model_dump(exclude_unset=True, mode="json")


class ReorderItem(BaseModel):
    id: int
    position: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    tasks: List[ReorderItem] = Field(..., min_length=1)


class TaskListFilters(BaseModel):
    """Query filters for listing a project's top-level tasks."""
    assignee_id: Optional[int] = None
    assignee_ids: List[int] = Field(default_factory=list)
    status_ids: List[int] = Field(default_factory=list)
    date_created_start: Optional[date] = None
    date_created_end: Optional[date] = None
    date_updated_start: Optional[date] = None
    date_updated_end: Optional[date] = None
    due_date_start: Optional[date] = None
    due_date_end: Optional[date] = None
