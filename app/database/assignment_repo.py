from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple
from app.schemas.assignment import Assignment, AssignmentStatus

class AssignmentRepo(ABC):
    @abstractmethod
    async def create(self, assignment: Assignment) -> str:
        """Inserisce un assignment già costruito dal service e ritorna il suo ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_page(
        self, filters: Mapping[str, Any], skip: int, limit: int
    ) -> Tuple[Sequence[Assignment], int]:
        """Pagina di assignment che soddisfano i filtri (uguaglianza), dal più recente,
        insieme al totale dei documenti che soddisfano i filtri."""
        raise NotImplementedError

    @abstractmethod
    async def find_for_teacher(self, teacher_id: str) -> Sequence[Assignment]:
        """Tutti gli assignment creati da un teacher, in ordine naturale."""
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, assignment_id: str) -> Optional[Assignment]:
        """Ritorna un assignment per ID, oppure None se non esiste."""
        raise NotImplementedError

    @abstractmethod
    async def find_many(self, assignment_ids: Iterable[str]) -> Sequence[Assignment]:
        raise NotImplementedError

    @abstractmethod
    async def update_draft(self, assignment_id: str, changes: Mapping[str, Any]) -> Optional[Assignment]:
        """Applica `changes` solo se l'assignment è ancora in Draft.
        Ritorna l'assignment aggiornato, oppure None se la condizione non vale più."""
        raise NotImplementedError

    @abstractmethod
    async def update_status(
        self, assignment_id: str, current: AssignmentStatus, target: AssignmentStatus
    ) -> Optional[Assignment]:
        """Compare-and-set dello stato: aggiorna solo se lo stato è ancora `current`."""
        raise NotImplementedError

    @abstractmethod
    async def delete_draft(self, assignment_id: str) -> bool:
        """Cancella un assignment in Draft. Ritorna True se qualcosa è stato cancellato."""
        raise NotImplementedError
