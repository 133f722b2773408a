from datetime import datetime
from pydantic import BaseModel, StrictFloat, StrictInt
from typing import Optional, Union

from app.schemas.assignment import AssignmentSummary


class SubmissionCreate(BaseModel):
    assignmentId: Optional[str] = None
    answer: Optional[str] = None


class Submission(BaseModel):
    submissionId: str
    assignmentId: str
    studentId: str
    answer: str
    submittedAt: datetime
    reviewed: bool = False
    grade: Optional[float] = None
    feedback: Optional[str] = None
    createdAt: datetime
    updatedAt: Optional[datetime] = None


class SubmissionReview(BaseModel):
    # strict: "85" and True are not grades
    grade: Optional[Union[StrictInt, StrictFloat]] = None
    feedback: Optional[str] = None


class SubmissionReportRow(BaseModel):
    submissionId: str
    studentId: str
    studentName: Optional[str] = None
    studentEmail: Optional[str] = None
    answer: str
    submittedAt: datetime
    reviewed: bool
    grade: Optional[float] = None
    feedback: Optional[str] = None
    assignmentTitle: str


class MySubmission(BaseModel):
    submissionId: str
    answer: str
    submittedAt: datetime
    reviewed: bool
    grade: Optional[float] = None
    feedback: Optional[str] = None
    assignment: Optional[AssignmentSummary] = None


class ReviewResult(BaseModel):
    submissionId: str
    studentName: Optional[str] = None
    assignmentTitle: str
    grade: Optional[float] = None
    feedback: Optional[str] = None
    reviewed: bool
