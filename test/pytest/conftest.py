import asyncio
from datetime import datetime, timedelta, timezone
from enum import Enum

import pytest

from app.core.errors import ConflictError
from app.schemas.analytics import SubmissionStats
from app.schemas.assignment import Assignment, AssignmentCreate
from app.schemas.context import Role, UserContext
from app.schemas.user import UserProfile


def _plain(value):
    return value.value if isinstance(value, Enum) else value


# ------------------------- Fake repositories -------------------------
class FakeAssignmentRepo:
    def __init__(self):
        self.items: dict[str, Assignment] = {}

    async def create(self, assignment: Assignment) -> str:
        if not getattr(assignment, "assignmentId", None):
            raise ValueError("assignmentId must be set by the service")
        self.items[assignment.assignmentId] = assignment
        return assignment.assignmentId

    async def find_page(self, filters, skip, limit):
        matching = [
            a for a in self.items.values()
            if all(_plain(getattr(a, k)) == v for k, v in filters.items())
        ]
        # newest first, later inserts win ties
        ordered = sorted(reversed(matching), key=lambda a: a.createdAt, reverse=True)
        return ordered[skip:skip + limit], len(matching)

    async def find_for_teacher(self, teacher_id: str):
        return [a for a in self.items.values() if a.createdBy == teacher_id]

    async def find_one(self, assignment_id: str):
        return self.items.get(assignment_id)

    async def find_many(self, assignment_ids):
        ids = set(assignment_ids)
        return [a for a in self.items.values() if a.assignmentId in ids]

    async def update_draft(self, assignment_id, changes):
        current = self.items.get(assignment_id)
        if current is None or current.status.value != "Draft":
            return None
        updated = current.model_copy(update={**changes, "updatedAt": datetime.now(timezone.utc)})
        self.items[assignment_id] = updated
        return updated

    async def update_status(self, assignment_id, current, target):
        a = self.items.get(assignment_id)
        if a is None or a.status is not current:
            return None
        updated = a.model_copy(update={"status": target, "updatedAt": datetime.now(timezone.utc)})
        self.items[assignment_id] = updated
        return updated

    async def delete_draft(self, assignment_id):
        a = self.items.get(assignment_id)
        if a is None or a.status.value != "Draft":
            return False
        del self.items[assignment_id]
        return True


class FakeSubmissionRepo:
    """Uniqueness on (assignmentId, studentId) is checked at insert time, like the unique index."""

    def __init__(self):
        self.items: dict = {}

    async def create(self, submission):
        key = (submission.assignmentId, submission.studentId)
        if any((s.assignmentId, s.studentId) == key for s in self.items.values()):
            raise ConflictError("You have already submitted this assignment", reason={
                "assignmentId": submission.assignmentId, "studentId": submission.studentId})
        self.items[submission.submissionId] = submission
        return submission.submissionId

    async def find_one(self, submission_id):
        return self.items.get(submission_id)

    async def find_by_student_and_assignment(self, student_id, assignment_id):
        found = next(
            (s for s in self.items.values() if s.studentId == student_id and s.assignmentId == assignment_id),
            None,
        )
        # yield after reading so concurrent creates interleave between check and insert
        await asyncio.sleep(0)
        return found

    async def find_for_assignment(self, assignment_id):
        found = [s for s in self.items.values() if s.assignmentId == assignment_id]
        return sorted(found, key=lambda s: s.submittedAt, reverse=True)

    async def find_for_student(self, student_id):
        found = [s for s in self.items.values() if s.studentId == student_id]
        return sorted(found, key=lambda s: s.submittedAt, reverse=True)

    async def review(self, submission_id, changes):
        s = self.items.get(submission_id)
        if s is None:
            return None
        updated = s.model_copy(update={**changes, "reviewed": True})
        self.items[submission_id] = updated
        return updated

    async def stats_by_assignment(self, assignment_ids):
        ids = set(assignment_ids)
        stats = {}
        for s in self.items.values():
            if s.assignmentId not in ids:
                continue
            st = stats.setdefault(s.assignmentId, {"total": 0, "reviewed": 0, "grades": []})
            st["total"] += 1
            st["reviewed"] += 1 if s.reviewed else 0
            if s.grade is not None:
                st["grades"].append(s.grade)
        return {
            aid: SubmissionStats(
                totalSubmissions=st["total"],
                reviewedSubmissions=st["reviewed"],
                averageGrade=sum(st["grades"]) / len(st["grades"]) if st["grades"] else None,
            )
            for aid, st in stats.items()
        }


class FakeUserDirectory:
    def __init__(self, profiles=None):
        self.profiles = {p.userId: p for p in (profiles or [])}

    async def find_many(self, user_ids):
        return {uid: self.profiles[uid] for uid in set(user_ids) if uid in self.profiles}


# ------------------------------- Fixtures -------------------------------------
@pytest.fixture
def repo():
    return FakeAssignmentRepo()

@pytest.fixture
def submission_repo():
    return FakeSubmissionRepo()

@pytest.fixture
def users():
    return FakeUserDirectory([
        UserProfile(userId="s1", name="Anna Bianchi", email="anna@example.org"),
        UserProfile(userId="s2", name="Luca Verdi", email="luca@example.org"),
    ])

@pytest.fixture
def no_users():
    return FakeUserDirectory()

@pytest.fixture
def teacher():
    return UserContext(user_id="t1", role=Role.TEACHER)

@pytest.fixture
def other_teacher():
    return UserContext(user_id="t2", role=Role.TEACHER)

@pytest.fixture
def student():
    return UserContext(user_id="s1", role=Role.STUDENT)

@pytest.fixture
def student2():
    return UserContext(user_id="s2", role=Role.STUDENT)


def _make_create(**overrides) -> AssignmentCreate:
    future = datetime.now(timezone.utc) + timedelta(days=7)
    base = dict(
        title="Compito",
        description="Desc",
        dueDate=future,
    )
    base.update(overrides)
    return AssignmentCreate(**base)


@pytest.fixture
def make_create():
    return _make_create
