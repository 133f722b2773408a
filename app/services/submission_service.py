import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from app.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.database.assignment_repo import AssignmentRepo
from app.database.submission_repo import SubmissionRepo
from app.database.user_repo import UserDirectory
from app.schemas.assignment import AssignmentStatus, AssignmentSummary
from app.schemas.context import Role, UserContext
from app.schemas.submission import (
    MySubmission,
    ReviewResult,
    Submission,
    SubmissionCreate,
    SubmissionReportRow,
    SubmissionReview,
)

logger = logging.getLogger("coursework.submissions")


def create_submission_id() -> str:
    return f"sub-{uuid.uuid4().hex}"


def _valid_grade(grade: Any) -> bool:
    if isinstance(grade, bool) or not isinstance(grade, (int, float)):
        return False
    return math.isfinite(grade) and 0 <= grade <= 100


class SubmissionService:

    @staticmethod
    async def create_submission(
        data: SubmissionCreate,
        user: UserContext,
        assignments: AssignmentRepo,
        repo: SubmissionRepo,
        now: Optional[datetime] = None,
    ) -> Submission:
        if user.role is not Role.STUDENT:
            raise ForbiddenError("Only students can submit assignments", reason={"role": user.role.value})

        answer = data.answer.strip() if data.answer else ""
        if not data.assignmentId or not answer:
            raise ValidationError(
                "Please provide assignment ID and answer",
                reason={"missing": [n for n, v in (("assignmentId", data.assignmentId), ("answer", answer)) if not v]},
            )

        assignment = await assignments.find_one(data.assignmentId)
        if not assignment:
            raise NotFoundError("Assignment not found", reason={"assignmentId": data.assignmentId})
        if assignment.status is not AssignmentStatus.PUBLISHED:
            raise InvalidStateError(
                "Assignment is not available for submission",
                reason={"status": assignment.status.value},
            )

        now = now or datetime.now(timezone.utc)
        if now > assignment.dueDate:
            raise InvalidStateError(
                "Assignment due date has passed. Submissions are no longer accepted.",
                reason={"dueDate": assignment.dueDate.isoformat()},
            )

        existing = await repo.find_by_student_and_assignment(user.user_id, assignment.assignmentId)
        if existing:
            raise ConflictError(
                "You have already submitted this assignment",
                reason={"assignmentId": assignment.assignmentId, "studentId": user.user_id},
            )

        submission = Submission(
            submissionId=create_submission_id(),
            assignmentId=assignment.assignmentId,
            studentId=str(user.user_id),
            answer=answer,
            submittedAt=now,
            reviewed=False,
            createdAt=now,
            updatedAt=now,
        )
        # il repository solleva ConflictError se l'indice unico rifiuta l'insert
        await repo.create(submission)
        logger.info("Submission created",
                    extra={"submission_id": submission.submissionId,
                           "assignment_id": assignment.assignmentId, "student_id": user.user_id})
        return submission

    @staticmethod
    async def list_for_assignment(
        assignment_id: str,
        user: UserContext,
        assignments: AssignmentRepo,
        repo: SubmissionRepo,
        users: UserDirectory,
    ) -> List[SubmissionReportRow]:
        if user.role is not Role.TEACHER:
            raise ForbiddenError("Only teachers can view assignment submissions", reason={"role": user.role.value})

        assignment = await assignments.find_one(assignment_id)
        if not assignment:
            raise NotFoundError("Assignment not found", reason={"assignmentId": assignment_id})
        if assignment.createdBy != user.user_id:
            raise ForbiddenError("Not authorized to view submissions for this assignment")

        submissions = await repo.find_for_assignment(assignment_id)
        profiles = await users.find_many(s.studentId for s in submissions)
        rows = []
        for s in submissions:
            profile = profiles.get(s.studentId)
            rows.append(SubmissionReportRow(
                submissionId=s.submissionId,
                studentId=s.studentId,
                studentName=profile.name if profile else None,
                studentEmail=profile.email if profile else None,
                answer=s.answer,
                submittedAt=s.submittedAt,
                reviewed=s.reviewed,
                grade=s.grade,
                feedback=s.feedback,
                assignmentTitle=assignment.title,
            ))
        return rows

    @staticmethod
    async def list_mine(
        user: UserContext,
        assignments: AssignmentRepo,
        repo: SubmissionRepo,
    ) -> List[MySubmission]:
        if user.role is not Role.STUDENT:
            raise ForbiddenError("Only students have submissions", reason={"role": user.role.value})

        submissions = await repo.find_for_student(user.user_id)
        by_id = {a.assignmentId: a for a in await assignments.find_many(s.assignmentId for s in submissions)}
        result = []
        for s in submissions:
            a = by_id.get(s.assignmentId)
            result.append(MySubmission(
                submissionId=s.submissionId,
                answer=s.answer,
                submittedAt=s.submittedAt,
                reviewed=s.reviewed,
                grade=s.grade,
                feedback=s.feedback,
                assignment=AssignmentSummary(
                    assignmentId=a.assignmentId,
                    title=a.title,
                    description=a.description,
                    dueDate=a.dueDate,
                    status=a.status,
                ) if a else None,
            ))
        return result

    @staticmethod
    async def review_submission(
        submission_id: str,
        data: SubmissionReview,
        user: UserContext,
        assignments: AssignmentRepo,
        repo: SubmissionRepo,
        users: UserDirectory,
    ) -> ReviewResult:
        if user.role is not Role.TEACHER:
            raise ForbiddenError("Only teachers can review submissions", reason={"role": user.role.value})

        submission = await repo.find_one(submission_id)
        if not submission:
            raise NotFoundError("Submission not found", reason={"submissionId": submission_id})
        assignment = await assignments.find_one(submission.assignmentId)
        if not assignment:
            raise NotFoundError("Assignment not found", reason={"assignmentId": submission.assignmentId})
        # chi revisiona è il proprietario dell'assignment, non chi ha creato la submission
        if assignment.createdBy != user.user_id:
            raise ForbiddenError("Not authorized to review this submission")

        changes: dict[str, Any] = {}
        if "grade" in data.model_fields_set:
            if not _valid_grade(data.grade):
                raise ValidationError(
                    "Grade must be a number between 0 and 100",
                    reason={"field": "grade"},
                )
            changes["grade"] = data.grade
        if "feedback" in data.model_fields_set:
            changes["feedback"] = data.feedback.strip() if data.feedback is not None else None

        updated = await repo.review(submission_id, changes)
        if updated is None:
            raise NotFoundError("Submission not found", reason={"submissionId": submission_id})

        profiles = await users.find_many([updated.studentId])
        profile = profiles.get(updated.studentId)
        logger.info("Submission reviewed",
                    extra={"submission_id": submission_id, "teacher_id": user.user_id,
                           "graded": "grade" in changes})
        return ReviewResult(
            submissionId=updated.submissionId,
            studentName=profile.name if profile else None,
            assignmentTitle=assignment.title,
            grade=updated.grade,
            feedback=updated.feedback,
            reviewed=updated.reviewed,
        )
