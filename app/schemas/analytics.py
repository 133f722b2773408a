from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional

from app.schemas.assignment import AssignmentStatus


class SubmissionStats(BaseModel):
    totalSubmissions: int = 0
    reviewedSubmissions: int = 0
    averageGrade: Optional[float] = None


class AssignmentAnalytics(BaseModel):
    assignmentId: str
    title: str
    status: AssignmentStatus
    dueDate: datetime
    totalSubmissions: int
    reviewedSubmissions: int
    pendingReviews: int
    averageGrade: Optional[float] = None


class AnalyticsOverview(BaseModel):
    totalAssignments: int
    totalSubmissions: int
    totalReviewed: int
    pendingReviews: int


class AnalyticsReport(BaseModel):
    overview: AnalyticsOverview
    assignmentAnalytics: List[AssignmentAnalytics]
