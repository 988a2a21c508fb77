"""
SmartTask — Wire representations.

Shared JSON contract for front ends. Field names are camelCase and stable,
timestamps are "YYYY-MM-DDTHH:MM:SS", optional timestamps are null. The
password hash is never part of an account view.

JSON example (task):
{
    "id": 3,
    "title": "Study",
    "description": "Chapter 4",
    "category": "study",
    "priority": "high",
    "dueDate": "2024-01-10T23:59:59",
    "completed": false,
    "createdAt": "2024-01-05T09:12:00",
    "completedAt": null,
    "studentEmail": "ann@x.com"
}
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from smarttask.data.models import Account, Task, TaskStats

WIRE_TIMESTAMP = "%Y-%m-%dT%H:%M:%S"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class AccountView(_WireModel):
    email: str
    first_name: str
    last_name: str
    student_id: str
    major: str
    created_at: datetime
    last_login_at: datetime | None = None
    is_active: bool = True

    @field_serializer("created_at", "last_login_at")
    def serialize_timestamp(self, value: datetime | None) -> str | None:
        return value.strftime(WIRE_TIMESTAMP) if value is not None else None

    @classmethod
    def from_account(cls, account: Account) -> AccountView:
        return cls(
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            student_id=account.student_id,
            major=account.major,
            created_at=account.created_at,
            last_login_at=account.last_login_at,
            is_active=account.is_active,
        )


class TaskView(_WireModel):
    id: int
    title: str
    description: str
    category: str
    priority: str
    due_date: datetime
    completed: bool
    created_at: datetime
    completed_at: datetime | None = None
    owner_email: str = Field(alias="studentEmail")

    @field_serializer("due_date", "created_at", "completed_at")
    def serialize_timestamp(self, value: datetime | None) -> str | None:
        return value.strftime(WIRE_TIMESTAMP) if value is not None else None

    @classmethod
    def from_task(cls, task: Task) -> TaskView:
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            category=task.category,
            priority=task.priority.value,
            due_date=task.due_date,
            completed=task.completed,
            created_at=task.created_at,
            completed_at=task.completed_at,
            owner_email=task.owner_email,
        )


class TaskStatsView(_WireModel):
    total: int
    completed: int
    pending: int
    overdue: int
    due_today: int

    @classmethod
    def from_stats(cls, stats: TaskStats) -> TaskStatsView:
        return cls(
            total=stats.total,
            completed=stats.completed,
            pending=stats.pending,
            overdue=stats.overdue,
            due_today=stats.due_today,
        )
