from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Sequence
from app.schemas.analytics import SubmissionStats
from app.schemas.submission import Submission

class SubmissionRepo(ABC):
    @abstractmethod
    async def create(self, submission: Submission) -> str:
        """Inserisce una submission. Solleva ConflictError se esiste già
        una submission per la coppia (assignmentId, studentId)."""
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, submission_id: str) -> Optional[Submission]:
        raise NotImplementedError

    @abstractmethod
    async def find_by_student_and_assignment(self, student_id: str, assignment_id: str) -> Optional[Submission]:
        raise NotImplementedError

    @abstractmethod
    async def find_for_assignment(self, assignment_id: str) -> Sequence[Submission]:
        """Submission di un assignment, dalla più recente."""
        raise NotImplementedError

    @abstractmethod
    async def find_for_student(self, student_id: str) -> Sequence[Submission]:
        """Submission di uno studente, dalla più recente."""
        raise NotImplementedError

    @abstractmethod
    async def review(self, submission_id: str, changes: Mapping[str, Any]) -> Optional[Submission]:
        """Applica grade/feedback e marca reviewed=True in un solo update atomico."""
        raise NotImplementedError

    @abstractmethod
    async def stats_by_assignment(self, assignment_ids: Iterable[str]) -> dict[str, SubmissionStats]:
        """Per ogni assignment con almeno una submission: totale, revisionate, voto medio."""
        raise NotImplementedError
