# app/database/mongo_user.py
from typing import Iterable
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.database.user_repo import UserDirectory
from app.schemas.user import UserProfile


class MongoUserDirectory(UserDirectory):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["users"]

    async def find_many(self, user_ids: Iterable[str]) -> dict[str, UserProfile]:
        ids = list({str(i) for i in user_ids})
        if not ids:
            return {}
        cursor = self.col.find(
            {"userId": {"$in": ids}},
            {"_id": 0, "userId": 1, "name": 1, "email": 1},
        )
        return {d["userId"]: UserProfile(**d) async for d in cursor}
