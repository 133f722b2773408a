from typing import Annotated, List
from fastapi import APIRouter, Depends, status

from app.schemas.context import UserContext
from app.schemas.submission import (
    MySubmission,
    ReviewResult,
    Submission,
    SubmissionCreate,
    SubmissionReportRow,
    SubmissionReview,
)
from app.database.assignment_repo import AssignmentRepo
from app.database.submission_repo import SubmissionRepo
from app.database.user_repo import UserDirectory
from app.core.deps import get_repository, get_submission_repository, get_user_directory

from app.services.auth_service import AuthService
from app.services.submission_service import SubmissionService


router = APIRouter()

AssignmentRepoDep = Annotated[AssignmentRepo, Depends(get_repository)]
SubmissionRepoDep = Annotated[SubmissionRepo, Depends(get_submission_repository)]
UsersDep = Annotated[UserDirectory, Depends(get_user_directory)]
UserDep = Annotated[UserContext, Depends(AuthService.get_current_user)]


@router.post("/submissions", status_code=status.HTTP_201_CREATED, response_model=Submission)
async def create_submission_endpoint(
    submission: SubmissionCreate,
    user: UserDep,
    assignments: AssignmentRepoDep,
    repo: SubmissionRepoDep,
):
    return await SubmissionService.create_submission(submission, user, assignments, repo)


# dichiarata prima di /submissions/{assignment_id} per non essere catturata dal path param
@router.get("/submissions/my-submissions", response_model=List[MySubmission])
async def my_submissions_endpoint(
    user: UserDep,
    assignments: AssignmentRepoDep,
    repo: SubmissionRepoDep,
):
    return await SubmissionService.list_mine(user, assignments, repo)


@router.get("/submissions/{assignment_id}", response_model=List[SubmissionReportRow])
async def assignment_submissions_endpoint(
    assignment_id: str,
    user: UserDep,
    assignments: AssignmentRepoDep,
    repo: SubmissionRepoDep,
    users: UsersDep,
):
    return await SubmissionService.list_for_assignment(assignment_id, user, assignments, repo, users)


@router.put("/submissions/{submission_id}/review", response_model=ReviewResult)
async def review_submission_endpoint(
    submission_id: str,
    review: SubmissionReview,
    user: UserDep,
    assignments: AssignmentRepoDep,
    repo: SubmissionRepoDep,
    users: UsersDep,
):
    return await SubmissionService.review_submission(submission_id, review, user, assignments, repo, users)
