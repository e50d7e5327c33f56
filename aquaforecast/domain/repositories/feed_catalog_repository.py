# aquaforecast/domain/repositories/feed_catalog_repository.py
from __future__ import annotations
from typing import Protocol, Iterable, Optional, Dict, Any

from aquaforecast.domain.entities.feed import Feed

class IRawFeedSource(Protocol):
    """
    Camada "crua" do catálogo de rações.

    Entrega os registros como vieram da origem (JSON, linha de banco etc.),
    com curva/matriz possivelmente em texto. Serve de caminho degradado quando
    a conversão tipada não é possível.
    """

    def get_feed_record(self, feed_id: str) -> Optional[Dict[str, Any]]:
        """
        Registro cru de uma ração.

        Returns:
            dict com ao menos 'id', 'code', 'name' e, opcionalmente,
            'feeding_curve' / 'feeding_matrix'; None se não existir.
        """
        ...

    def get_inventory_records(self) -> Iterable[Dict[str, Any]]:
        """Registros de estoque crus: {'code': str, 'quantity_kg': número|str}."""
        ...

    def refresh(self) -> None:
        """Descarta a leitura anterior; a próxima consulta lê a origem de novo."""
        ...


class IFeedCatalogRepository(Protocol):
    """
    Camada tipada do catálogo: rações já convertidas em value objects.
    """

    def get_feed_by_id(self, feed_id: str) -> Optional[Feed]:
        """
        Args:
            feed_id: Identificador da ração.

        Returns:
            Optional[Feed]: ração tipada, ou None se não encontrada.
        """
        ...

    def get_inventory_by_feed_code(self) -> Dict[str, float]:
        """Estoque atual (kg) por código de ração."""
        ...

    def refresh(self) -> None:
        """
        Início de uma nova execução: descarta rações já convertidas e
        força nova leitura do estoque na origem.
        """
        ...
