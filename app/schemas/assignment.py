from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, computed_field, field_validator
from typing import List, Optional


class AssignmentStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    COMPLETED = "Completed"


# Lifecycle: every status may only move to the states listed here.
ALLOWED_TRANSITIONS: dict[AssignmentStatus, frozenset[AssignmentStatus]] = {
    AssignmentStatus.DRAFT: frozenset({AssignmentStatus.PUBLISHED}),
    AssignmentStatus.PUBLISHED: frozenset({AssignmentStatus.COMPLETED}),
    AssignmentStatus.COMPLETED: frozenset(),
}


def can_transition(current: AssignmentStatus, target: AssignmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # naive timestamps are taken as UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class AssignmentCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    dueDate: Optional[datetime] = None

    @field_validator("dueDate")
    @classmethod
    def normalize_due_date(cls, value):
        return as_utc(value)


class AssignmentUpdate(AssignmentCreate):
    pass


class AssignmentStatusUpdate(BaseModel):
    status: Optional[str] = None


class Assignment(BaseModel):
    assignmentId: str
    title: str
    description: str
    dueDate: datetime
    status: AssignmentStatus = AssignmentStatus.DRAFT
    createdBy: str
    createdAt: datetime
    updatedAt: Optional[datetime] = None

    @field_validator("dueDate", "createdAt", "updatedAt")
    @classmethod
    def normalize_timestamps(cls, value):
        return as_utc(value)

    @computed_field
    @property
    def isOverdue(self) -> bool:
        return (
            self.dueDate < datetime.now(timezone.utc)
            and self.status is not AssignmentStatus.COMPLETED
        )


class AssignmentSummary(BaseModel):
    assignmentId: str
    title: str
    description: str
    dueDate: datetime
    status: AssignmentStatus


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalAssignments: int
    hasNext: bool
    hasPrev: bool


class AssignmentPage(BaseModel):
    count: int
    pagination: Pagination
    data: List[Assignment]
