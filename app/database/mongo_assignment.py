# app/database/mongo_assignment.py
from datetime import datetime, timezone
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.database.assignment_repo import AssignmentRepo
from app.schemas.assignment import Assignment, AssignmentStatus

logger = logging.getLogger("coursework.repository")


class MongoAssignmentRepository(AssignmentRepo):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["assignments"]

    def _from_doc(self, d: dict) -> Assignment:
        base = {k: v for k, v in d.items() if k not in {"_id"}}
        return Assignment(**base)

    def _to_doc_from_model(self, a: Assignment) -> dict:
        doc = a.model_dump(exclude={"isOverdue"})
        doc["status"] = a.status.value
        doc.setdefault("createdAt", datetime.now(timezone.utc))
        if doc.get("updatedAt") is None:
            doc["updatedAt"] = doc["createdAt"]
        return doc

    async def create(self, assignment: Assignment) -> str:
        doc = self._to_doc_from_model(assignment)
        await self.col.insert_one(doc)
        return assignment.assignmentId

    async def find_page(
        self, filters: Mapping[str, Any], skip: int, limit: int
    ) -> Tuple[Sequence[Assignment], int]:
        query = dict(filters)
        cursor = self.col.find(query).sort("createdAt", DESCENDING).skip(skip).limit(limit)
        docs: List[dict] = [d async for d in cursor]
        total = await self.col.count_documents(query)
        return [self._from_doc(d) for d in docs], total

    async def find_for_teacher(self, teacher_id: str) -> Sequence[Assignment]:
        cursor = self.col.find({"createdBy": str(teacher_id)})
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def find_one(self, assignment_id: str) -> Optional[Assignment]:
        d = await self.col.find_one({"assignmentId": str(assignment_id)})
        return self._from_doc(d) if d else None

    async def find_many(self, assignment_ids: Iterable[str]) -> Sequence[Assignment]:
        ids = list({str(i) for i in assignment_ids})
        if not ids:
            return []
        cursor = self.col.find({"assignmentId": {"$in": ids}})
        return [self._from_doc(d) async for d in cursor]

    async def update_draft(self, assignment_id: str, changes: Mapping[str, Any]) -> Optional[Assignment]:
        d = await self.col.find_one_and_update(
            {"assignmentId": str(assignment_id), "status": AssignmentStatus.DRAFT.value},
            {"$set": {**changes, "updatedAt": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        return self._from_doc(d) if d else None

    async def update_status(
        self, assignment_id: str, current: AssignmentStatus, target: AssignmentStatus
    ) -> Optional[Assignment]:
        d = await self.col.find_one_and_update(
            {"assignmentId": str(assignment_id), "status": current.value},
            {"$set": {"status": target.value, "updatedAt": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        if d:
            logger.debug("Assignment status changed",
                         extra={"assignment_id": assignment_id, "from": current.value, "to": target.value})
        return self._from_doc(d) if d else None

    async def delete_draft(self, assignment_id: str) -> bool:
        res = await self.col.delete_one(
            {"assignmentId": str(assignment_id), "status": AssignmentStatus.DRAFT.value}
        )
        return res.deleted_count > 0

    async def ensure_indexes(self):
        await self.col.create_index("assignmentId", unique=True)
        await self.col.create_index([("createdBy", ASCENDING), ("status", ASCENDING)])
        await self.col.create_index([("status", ASCENDING), ("dueDate", ASCENDING)])
        await self.col.create_index([("createdAt", DESCENDING)])
