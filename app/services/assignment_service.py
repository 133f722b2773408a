import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union

from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from app.database.assignment_repo import AssignmentRepo
from app.schemas.assignment import (
    Assignment,
    AssignmentCreate,
    AssignmentPage,
    AssignmentStatus,
    AssignmentUpdate,
    Pagination,
    can_transition,
)
from app.schemas.context import Role, UserContext

logger = logging.getLogger("coursework.assignments")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
# oltre questi limiti skip non sta in un int64 BSON
MAX_PAGE = 1_000_000
MAX_LIMIT = 100


def create_assignment_id() -> str:
    return f"as-{uuid.uuid4().hex}"


def _positive_int(value: Union[int, str, None], default: int, maximum: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if 0 < parsed <= maximum else default


def parse_status(value: Optional[str]) -> Optional[AssignmentStatus]:
    try:
        return AssignmentStatus(value)
    except ValueError:
        return None


def _require_teacher(user: UserContext, action: str) -> None:
    if user.role is not Role.TEACHER:
        raise ForbiddenError(f"Only teachers can {action}", reason={"role": user.role.value})


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class AssignmentService:

    @staticmethod
    async def list_assignments(
        user: UserContext,
        repo: AssignmentRepo,
        status: Optional[str] = None,
        page: Union[int, str, None] = None,
        limit: Union[int, str, None] = None,
    ) -> AssignmentPage:
        page = _positive_int(page, DEFAULT_PAGE, MAX_PAGE)
        limit = _positive_int(limit, DEFAULT_LIMIT, MAX_LIMIT)

        filters: dict[str, Any] = {}
        if user.role is Role.STUDENT:
            # il filtro implicito del ruolo viene scritto per ultimo: non è sovrascrivibile
            filters["status"] = AssignmentStatus.PUBLISHED.value
        elif user.role is Role.TEACHER:
            requested = parse_status(status)
            if requested is not None:
                filters["status"] = requested.value
            filters["createdBy"] = user.user_id

        items, total = await repo.find_page(filters, skip=(page - 1) * limit, limit=limit)
        total_pages = math.ceil(total / limit)
        return AssignmentPage(
            count=len(items),
            pagination=Pagination(
                currentPage=page,
                totalPages=total_pages,
                totalAssignments=total,
                hasNext=page < total_pages,
                hasPrev=page > 1,
            ),
            data=list(items),
        )

    @staticmethod
    async def get_assignment(assignment_id: str, user: UserContext, repo: AssignmentRepo) -> Assignment:
        doc = await repo.find_one(assignment_id)
        if not doc:
            raise NotFoundError("Assignment not found", reason={"assignmentId": assignment_id})
        if user.role is Role.STUDENT and doc.status is not AssignmentStatus.PUBLISHED:
            raise ForbiddenError("Assignment not available", reason={"status": doc.status.value})
        if user.role is Role.TEACHER and doc.createdBy != user.user_id:
            raise ForbiddenError("Not authorized to view this assignment")
        return doc

    @staticmethod
    async def create_assignment(
        data: AssignmentCreate,
        user: UserContext,
        repo: AssignmentRepo
    ) -> Assignment:
        _require_teacher(user, "create assignments")

        missing = [
            name for name in ("title", "description")
            if _is_blank(getattr(data, name))
        ]
        if data.dueDate is None:
            missing.append("dueDate")
        if missing:
            raise ValidationError(
                "Please provide title, description, and due date",
                reason={"missing": missing},
            )

        now = datetime.now(timezone.utc)
        assignment = Assignment(
            assignmentId=create_assignment_id(),
            title=data.title.strip(),
            description=data.description.strip(),
            dueDate=data.dueDate,
            status=AssignmentStatus.DRAFT,
            createdBy=str(user.user_id),
            createdAt=now,
            updatedAt=now,
        )
        await repo.create(assignment)
        logger.info("Assignment created",
                    extra={"assignment_id": assignment.assignmentId, "teacher_id": user.user_id})
        return assignment

    @staticmethod
    async def _owned_for_edit(assignment_id: str, user: UserContext, repo: AssignmentRepo, action: str) -> Assignment:
        _require_teacher(user, f"{action} assignments")
        doc = await repo.find_one(assignment_id)
        if not doc:
            raise NotFoundError("Assignment not found", reason={"assignmentId": assignment_id})
        if doc.createdBy != user.user_id:
            raise ForbiddenError(f"Not authorized to {action} this assignment")
        return doc

    @staticmethod
    async def update_assignment(
        assignment_id: str,
        data: AssignmentUpdate,
        user: UserContext,
        repo: AssignmentRepo,
    ) -> Assignment:
        doc = await AssignmentService._owned_for_edit(assignment_id, user, repo, "update")
        if doc.status is not AssignmentStatus.DRAFT:
            raise InvalidStateError(
                "Can only edit assignments in Draft status",
                reason={"status": doc.status.value},
            )

        changes: dict[str, Any] = {}
        for name in ("title", "description"):
            value = getattr(data, name)
            # campi assenti, null o vuoti restano invariati
            if not _is_blank(value):
                changes[name] = value.strip()
        if data.dueDate is not None:
            changes["dueDate"] = data.dueDate

        if not changes:
            return doc

        updated = await repo.update_draft(assignment_id, changes)
        if updated is None:
            # stato cambiato tra lettura e scrittura
            raise InvalidStateError("Can only edit assignments in Draft status", reason={"status": "changed"})
        logger.info("Assignment updated",
                    extra={"assignment_id": assignment_id, "fields": sorted(changes)})
        return updated

    @staticmethod
    async def delete_assignment(assignment_id: str, user: UserContext, repo: AssignmentRepo) -> None:
        doc = await AssignmentService._owned_for_edit(assignment_id, user, repo, "delete")
        if doc.status is not AssignmentStatus.DRAFT:
            raise InvalidStateError(
                "Can only delete assignments in Draft status",
                reason={"status": doc.status.value},
            )
        if not await repo.delete_draft(assignment_id):
            raise InvalidStateError("Can only delete assignments in Draft status", reason={"status": "changed"})
        logger.info("Assignment deleted", extra={"assignment_id": assignment_id})

    @staticmethod
    async def set_status(
        assignment_id: str,
        target: Optional[str],
        user: UserContext,
        repo: AssignmentRepo,
    ) -> Assignment:
        _require_teacher(user, "change assignment status")
        target_status = parse_status(target)
        if target_status is None:
            raise ValidationError(
                "Please provide a valid status (Draft, Published, Completed)",
                reason={"status": target},
            )

        doc = await AssignmentService._owned_for_edit(assignment_id, user, repo, "update")
        current = doc.status
        if not can_transition(current, target_status):
            raise InvalidStateError(
                f"Cannot change status from {current.value} to {target_status.value}",
                reason={"from": current.value, "to": target_status.value},
            )

        updated = await repo.update_status(assignment_id, current, target_status)
        if updated is None:
            raise InvalidStateError(
                f"Cannot change status from {current.value} to {target_status.value}",
                reason={"from": current.value, "to": target_status.value},
            )
        logger.info("Assignment status updated",
                    extra={"assignment_id": assignment_id, "from": current.value, "to": target_status.value})
        return updated
