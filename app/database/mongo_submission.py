# app/database/mongo_submission.py
from datetime import datetime, timezone
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.errors import ConflictError
from app.database.submission_repo import SubmissionRepo
from app.schemas.analytics import SubmissionStats
from app.schemas.submission import Submission

logger = logging.getLogger("coursework.repository")


class MongoSubmissionRepository(SubmissionRepo):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["submissions"]

    def _from_doc(self, d: dict) -> Submission:
        base = {k: v for k, v in d.items() if k not in {"_id"}}
        return Submission(**base)

    def _to_doc_from_model(self, s: Submission) -> dict:
        doc = s.model_dump()
        if doc.get("updatedAt") is None:
            doc["updatedAt"] = doc["createdAt"]
        return doc

    async def create(self, submission: Submission) -> str:
        doc = self._to_doc_from_model(submission)
        try:
            await self.col.insert_one(doc)
        except DuplicateKeyError as e:
            # l'indice unico (assignmentId, studentId) è l'autorità, non il controllo nel service
            logger.info("Duplicate submission rejected by unique index",
                        extra={"assignment_id": submission.assignmentId, "student_id": submission.studentId})
            raise ConflictError(
                "You have already submitted this assignment",
                reason={"assignmentId": submission.assignmentId, "studentId": submission.studentId},
            ) from e
        return submission.submissionId

    async def find_one(self, submission_id: str) -> Optional[Submission]:
        d = await self.col.find_one({"submissionId": str(submission_id)})
        return self._from_doc(d) if d else None

    async def find_by_student_and_assignment(self, student_id: str, assignment_id: str) -> Optional[Submission]:
        d = await self.col.find_one({"assignmentId": str(assignment_id), "studentId": str(student_id)})
        return self._from_doc(d) if d else None

    async def find_for_assignment(self, assignment_id: str) -> Sequence[Submission]:
        cursor = self.col.find({"assignmentId": str(assignment_id)}).sort("submittedAt", DESCENDING)
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def find_for_student(self, student_id: str) -> Sequence[Submission]:
        cursor = self.col.find({"studentId": str(student_id)}).sort("submittedAt", DESCENDING)
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def review(self, submission_id: str, changes: Mapping[str, Any]) -> Optional[Submission]:
        d = await self.col.find_one_and_update(
            {"submissionId": str(submission_id)},
            {"$set": {**changes, "reviewed": True, "updatedAt": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        return self._from_doc(d) if d else None

    async def stats_by_assignment(self, assignment_ids: Iterable[str]) -> dict[str, SubmissionStats]:
        ids = [str(i) for i in assignment_ids]
        if not ids:
            return {}
        pipeline = [
            {"$match": {"assignmentId": {"$in": ids}}},
            {
                "$group": {
                    "_id": "$assignmentId",
                    "totalSubmissions": {"$sum": 1},
                    "reviewedSubmissions": {"$sum": {"$cond": [{"$eq": ["$reviewed", True]}, 1, 0]}},
                    # $avg ignora null e campi mancanti
                    "averageGrade": {"$avg": "$grade"},
                }
            },
        ]
        rows = await self.col.aggregate(pipeline).to_list(length=None)
        return {
            r["_id"]: SubmissionStats(
                totalSubmissions=r["totalSubmissions"],
                reviewedSubmissions=r["reviewedSubmissions"],
                averageGrade=r.get("averageGrade"),
            )
            for r in rows
        }

    async def ensure_indexes(self):
        await self.col.create_index("submissionId", unique=True)
        await self.col.create_index(
            [("assignmentId", ASCENDING), ("studentId", ASCENDING)],
            unique=True,
            name="uq_assignment_student",
        )
        await self.col.create_index([("assignmentId", ASCENDING), ("submittedAt", DESCENDING)])
        await self.col.create_index([("studentId", ASCENDING), ("submittedAt", DESCENDING)])
