from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.schemas.assignment import (
    Assignment,
    AssignmentCreate,
    AssignmentPage,
    AssignmentStatusUpdate,
    AssignmentUpdate,
)
from app.schemas.context import UserContext
from app.database.assignment_repo import AssignmentRepo
from app.core.deps import get_repository

from app.services.auth_service import AuthService
from app.services.assignment_service import AssignmentService


router = APIRouter()

RepoDep = Annotated[AssignmentRepo, Depends(get_repository)]
UserDep = Annotated[UserContext, Depends(AuthService.get_current_user)]


@router.get("/assignments", response_model=AssignmentPage)
async def list_assignments_endpoint(
    user: UserDep,
    repo: RepoDep,
    # stringhe: valori non validi ricadono sui default invece di dare errore
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
):
    return await AssignmentService.list_assignments(
        user, repo, status=status_filter, page=page, limit=limit
    )


@router.post("/assignments", status_code=status.HTTP_201_CREATED, response_model=Assignment)
async def create_assignment_endpoint(
    assignment: AssignmentCreate,
    user: UserDep,
    repo: RepoDep,
):
    created = await AssignmentService.create_assignment(assignment, user, repo)
    location = f"/api/v1/assignments/{created.assignmentId}"
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=jsonable_encoder(created),
        headers={"Location": location},
    )


@router.get("/assignments/{assignment_id}", response_model=Assignment)
async def get_assignment_endpoint(
    assignment_id: str,
    user: UserDep,
    repo: RepoDep,
):
    return await AssignmentService.get_assignment(assignment_id, user, repo)


@router.put("/assignments/{assignment_id}", response_model=Assignment)
async def update_assignment_endpoint(
    assignment_id: str,
    changes: AssignmentUpdate,
    user: UserDep,
    repo: RepoDep,
):
    return await AssignmentService.update_assignment(assignment_id, changes, user, repo)


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment_endpoint(
    assignment_id: str,
    user: UserDep,
    repo: RepoDep,
):
    await AssignmentService.delete_assignment(assignment_id, user, repo)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/assignments/{assignment_id}/status", response_model=Assignment)
async def set_assignment_status_endpoint(
    assignment_id: str,
    body: AssignmentStatusUpdate,
    user: UserDep,
    repo: RepoDep,
):
    return await AssignmentService.set_status(assignment_id, body.status, user, repo)
