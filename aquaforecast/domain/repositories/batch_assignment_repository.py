# aquaforecast/domain/repositories/batch_assignment_repository.py
from __future__ import annotations
from typing import Protocol, List

from aquaforecast.domain.value_objects import FeedAssignmentEntry

class IBatchAssignmentRepository(Protocol):
    """
    Contrato de leitura das faixas de ração atribuídas a um lote.
    """

    def get_active_assignments(self, batch_id: str) -> List[FeedAssignmentEntry]:
        """
        Lista as atribuições ativas do lote (ordem livre; o seletor ordena).

        Args:
            batch_id: Identificador do lote.

        Returns:
            Lista possivelmente vazia de FeedAssignmentEntry.
        """
        ...
