import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.schemas.context import Role, UserContext
from app.schemas.submission import SubmissionCreate, SubmissionReview
from app.services.assignment_service import AssignmentService
from app.services.submission_service import SubmissionService


@pytest.fixture
def published(repo, teacher, make_create):
    async def _make(**overrides):
        a = await AssignmentService.create_assignment(make_create(**overrides), teacher, repo)
        return await AssignmentService.set_status(a.assignmentId, "Published", teacher, repo)
    return _make


async def _submit(user, assignment_id, repo, submission_repo, answer="La mia risposta", now=None):
    return await SubmissionService.create_submission(
        SubmissionCreate(assignmentId=assignment_id, answer=answer), user, repo, submission_repo, now=now
    )


# --------------------------------- Create --------------------------------------
@pytest.mark.asyncio
async def test_submit_to_published_before_due_date(repo, submission_repo, student, published):
    a = await published()
    s = await _submit(student, a.assignmentId, repo, submission_repo, answer="  risposta  ")
    assert s.studentId == "s1"
    assert s.answer == "risposta"
    assert s.reviewed is False
    assert s.grade is None and s.feedback is None
    assert submission_repo.items[s.submissionId] == s

@pytest.mark.asyncio
async def test_submit_requires_student(repo, submission_repo, teacher, published):
    a = await published()
    with pytest.raises(ForbiddenError):
        await _submit(teacher, a.assignmentId, repo, submission_repo)

@pytest.mark.asyncio
@pytest.mark.parametrize("assignment_id,answer", [(None, "x"), ("as-1", None), ("as-1", "   "), ("", "x")])
async def test_submit_missing_fields(repo, submission_repo, student, assignment_id, answer):
    with pytest.raises(ValidationError):
        await SubmissionService.create_submission(
            SubmissionCreate(assignmentId=assignment_id, answer=answer), student, repo, submission_repo
        )

@pytest.mark.asyncio
async def test_submit_unknown_assignment(repo, submission_repo, student):
    with pytest.raises(NotFoundError):
        await _submit(student, "as-missing", repo, submission_repo)

@pytest.mark.asyncio
async def test_submit_to_draft_or_completed_fails(repo, submission_repo, teacher, student, make_create, published):
    draft = await AssignmentService.create_assignment(make_create(), teacher, repo)
    with pytest.raises(InvalidStateError):
        await _submit(student, draft.assignmentId, repo, submission_repo)

    done = await published()
    await AssignmentService.set_status(done.assignmentId, "Completed", teacher, repo)
    with pytest.raises(InvalidStateError):
        await _submit(student, done.assignmentId, repo, submission_repo)
    assert submission_repo.items == {}

@pytest.mark.asyncio
async def test_submit_after_due_date_fails(repo, submission_repo, student, published):
    a = await published()
    later = a.dueDate + timedelta(seconds=1)
    with pytest.raises(InvalidStateError) as exc:
        await _submit(student, a.assignmentId, repo, submission_repo, now=later)
    assert "dueDate" in exc.value.reason

@pytest.mark.asyncio
async def test_submit_exactly_at_due_date_is_accepted(repo, submission_repo, student, published):
    a = await published()
    s = await _submit(student, a.assignmentId, repo, submission_repo, now=a.dueDate)
    assert s.submittedAt == a.dueDate

@pytest.mark.asyncio
async def test_submit_twice_conflict(repo, submission_repo, student, student2, published):
    a = await published()
    await _submit(student, a.assignmentId, repo, submission_repo)
    with pytest.raises(ConflictError):
        await _submit(student, a.assignmentId, repo, submission_repo)
    # another student is unaffected
    await _submit(student2, a.assignmentId, repo, submission_repo)
    assert len(submission_repo.items) == 2

@pytest.mark.asyncio
async def test_concurrent_submissions_one_wins(repo, submission_repo, student, published):
    a = await published()
    results = await asyncio.gather(
        _submit(student, a.assignmentId, repo, submission_repo, answer="uno"),
        _submit(student, a.assignmentId, repo, submission_repo, answer="due"),
        return_exceptions=True,
    )
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    successes = [r for r in results if not isinstance(r, Exception)]
    assert len(conflicts) == 1
    assert len(successes) == 1
    assert len(submission_repo.items) == 1


# --------------------------------- Listing -------------------------------------
@pytest.mark.asyncio
async def test_list_for_assignment_joins_names(repo, submission_repo, users, teacher, student, student2, published):
    a = await published(title="Relazione")
    now = datetime.now(timezone.utc)
    await _submit(student, a.assignmentId, repo, submission_repo, now=now - timedelta(minutes=5))
    await _submit(student2, a.assignmentId, repo, submission_repo, now=now)

    rows = await SubmissionService.list_for_assignment(a.assignmentId, teacher, repo, submission_repo, users)
    assert [r.studentName for r in rows] == ["Luca Verdi", "Anna Bianchi"]
    assert rows[1].studentEmail == "anna@example.org"
    assert {r.assignmentTitle for r in rows} == {"Relazione"}

@pytest.mark.asyncio
async def test_list_for_assignment_unknown_student_profile(repo, submission_repo, no_users, teacher, published):
    a = await published()
    stranger = UserContext(user_id="s9", role=Role.STUDENT)
    await _submit(stranger, a.assignmentId, repo, submission_repo)
    rows = await SubmissionService.list_for_assignment(
        a.assignmentId, teacher, repo, submission_repo, no_users
    )
    assert rows[0].studentId == "s9"
    assert rows[0].studentName is None

@pytest.mark.asyncio
async def test_list_for_assignment_gating(repo, submission_repo, users, other_teacher, student, published):
    with pytest.raises(NotFoundError):
        await SubmissionService.list_for_assignment("as-missing", other_teacher, repo, submission_repo, users)
    a = await published()
    with pytest.raises(ForbiddenError):
        await SubmissionService.list_for_assignment(a.assignmentId, other_teacher, repo, submission_repo, users)
    with pytest.raises(ForbiddenError):
        await SubmissionService.list_for_assignment(a.assignmentId, student, repo, submission_repo, users)

@pytest.mark.asyncio
async def test_list_mine(repo, submission_repo, student, student2, published):
    first = await published(title="Primo")
    second = await published(title="Secondo")
    now = datetime.now(timezone.utc)
    await _submit(student, first.assignmentId, repo, submission_repo, now=now - timedelta(hours=1))
    await _submit(student, second.assignmentId, repo, submission_repo, now=now)
    await _submit(student2, first.assignmentId, repo, submission_repo)

    mine = await SubmissionService.list_mine(student, repo, submission_repo)
    assert [m.assignment.title for m in mine] == ["Secondo", "Primo"]
    assert mine[0].assignment.status.value == "Published"

@pytest.mark.asyncio
async def test_list_mine_requires_student(repo, submission_repo, teacher):
    with pytest.raises(ForbiddenError):
        await SubmissionService.list_mine(teacher, repo, submission_repo)


# --------------------------------- Review --------------------------------------
@pytest.mark.asyncio
async def test_review_with_grade_and_feedback(repo, submission_repo, users, teacher, student, published):
    a = await published(title="Tema")
    s = await _submit(student, a.assignmentId, repo, submission_repo)

    result = await SubmissionService.review_submission(
        s.submissionId, SubmissionReview(grade=85, feedback=" Ottimo "), teacher, repo, submission_repo, users
    )
    assert result.reviewed is True
    assert result.grade == 85
    assert result.feedback == "Ottimo"
    assert result.studentName == "Anna Bianchi"
    assert result.assignmentTitle == "Tema"

@pytest.mark.asyncio
async def test_review_without_fields_still_marks_reviewed(repo, submission_repo, users, teacher, student, published):
    a = await published()
    s = await _submit(student, a.assignmentId, repo, submission_repo)
    result = await SubmissionService.review_submission(
        s.submissionId, SubmissionReview(), teacher, repo, submission_repo, users
    )
    assert result.reviewed is True
    assert result.grade is None

@pytest.mark.asyncio
@pytest.mark.parametrize("bad_grade", [-1, 100.5, 101, float("nan"), None])
async def test_review_bad_grade_leaves_submission_unchanged(
    repo, submission_repo, users, teacher, student, published, bad_grade
):
    a = await published()
    s = await _submit(student, a.assignmentId, repo, submission_repo)
    await SubmissionService.review_submission(
        s.submissionId, SubmissionReview(grade=70), teacher, repo, submission_repo, users
    )

    with pytest.raises(ValidationError):
        await SubmissionService.review_submission(
            s.submissionId, SubmissionReview(grade=bad_grade, feedback="x"), teacher, repo, submission_repo, users
        )
    stored = submission_repo.items[s.submissionId]
    assert stored.grade == 70
    assert stored.feedback is None

@pytest.mark.asyncio
@pytest.mark.parametrize("grade", [0, 100, 59.5])
async def test_review_grade_bounds_inclusive(repo, submission_repo, users, teacher, student, published, grade):
    a = await published()
    s = await _submit(student, a.assignmentId, repo, submission_repo)
    result = await SubmissionService.review_submission(
        s.submissionId, SubmissionReview(grade=grade), teacher, repo, submission_repo, users
    )
    assert result.grade == grade

def test_review_grade_must_be_a_real_number():
    from pydantic import ValidationError as PydanticValidationError

    for bad in ("85", True):
        with pytest.raises(PydanticValidationError):
            SubmissionReview(grade=bad)

@pytest.mark.asyncio
async def test_review_empty_feedback_clears(repo, submission_repo, users, teacher, student, published):
    a = await published()
    s = await _submit(student, a.assignmentId, repo, submission_repo)
    await SubmissionService.review_submission(
        s.submissionId, SubmissionReview(feedback="Rivedi"), teacher, repo, submission_repo, users
    )
    result = await SubmissionService.review_submission(
        s.submissionId, SubmissionReview(feedback=""), teacher, repo, submission_repo, users
    )
    assert result.feedback == ""
    assert result.reviewed is True

@pytest.mark.asyncio
async def test_review_gating(repo, submission_repo, users, teacher, other_teacher, student, published):
    with pytest.raises(NotFoundError):
        await SubmissionService.review_submission(
            "sub-missing", SubmissionReview(grade=50), teacher, repo, submission_repo, users
        )
    a = await published()
    s = await _submit(student, a.assignmentId, repo, submission_repo)
    with pytest.raises(ForbiddenError):
        await SubmissionService.review_submission(
            s.submissionId, SubmissionReview(grade=50), other_teacher, repo, submission_repo, users
        )
    # the submitting student does not own the review
    with pytest.raises(ForbiddenError):
        await SubmissionService.review_submission(
            s.submissionId, SubmissionReview(grade=100), student, repo, submission_repo, users
        )
    assert submission_repo.items[s.submissionId].reviewed is False
