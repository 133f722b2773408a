from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable
from app.schemas.user import UserProfile

class UserDirectory(ABC):
    """Profili utente gestiti dall'identity provider, in sola lettura."""

    @abstractmethod
    async def find_many(self, user_ids: Iterable[str]) -> dict[str, UserProfile]:
        """Ritorna i profili trovati indicizzati per userId; gli ID sconosciuti vengono omessi."""
        raise NotImplementedError
