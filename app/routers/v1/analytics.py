from typing import Annotated
from fastapi import APIRouter, Depends

from app.core.deps import get_repository, get_submission_repository
from app.database.assignment_repo import AssignmentRepo
from app.database.submission_repo import SubmissionRepo
from app.schemas.analytics import AnalyticsReport
from app.schemas.context import UserContext
from app.services.analytics_service import AnalyticsService
from app.services.auth_service import AuthService

router = APIRouter()
AssignmentRepoDep = Annotated[AssignmentRepo, Depends(get_repository)]
SubmissionRepoDep = Annotated[SubmissionRepo, Depends(get_submission_repository)]
UserDep = Annotated[UserContext, Depends(AuthService.get_current_user)]

@router.get("/analytics", response_model=AnalyticsReport)
async def analytics_endpoint(user: UserDep, assignments: AssignmentRepoDep, submissions: SubmissionRepoDep):
    return await AnalyticsService.report(user, assignments, submissions)
