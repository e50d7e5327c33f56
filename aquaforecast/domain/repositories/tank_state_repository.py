# aquaforecast/domain/repositories/tank_state_repository.py
from __future__ import annotations
from typing import Protocol, Optional, List, Iterable, Dict

from aquaforecast.domain.value_objects import TankSnapshot

class ITankStateRepository(Protocol):
    """
    Contrato de leitura do estado dos tanques e do SGR dos lotes.
    """

    def get_live_tanks(self) -> List[TankSnapshot]:
        """Tanques com população viva (quantidade > 0) no escopo."""
        ...

    def get_tank(self, tank_id: str) -> Optional[TankSnapshot]:
        """Snapshot de um tanque, ou None se não existir."""
        ...

    def get_batch_sgr(self, batch_ids: Iterable[str]) -> Dict[str, float]:
        """
        Busca em lote o SGR cadastrado de vários lotes (uma única consulta).

        Returns:
            dict batch_id -> SGR (%/dia). Lotes sem SGR ficam de fora.
        """
        ...

    def refresh(self) -> None:
        """Descarta a leitura anterior dos tanques/lotes (nova execução)."""
        ...
