from pydantic import BaseModel
from typing import Optional


class UserProfile(BaseModel):
    userId: str
    name: Optional[str] = None
    email: Optional[str] = None
