"""
Ração do catálogo e resultado da seleção de ração para um lote.

`FeedSelection` é uma variante etiquetada: o chamador distingue "nada
configurado para este peso" (`NO_ASSIGNMENT`) de "falha ao acessar os dados"
(`LOOKUP_FAILED`), o que um simples `None` confundiria.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from aquaforecast.domain.enums import SelectionStatus, FeedPath
from aquaforecast.domain.value_objects import FeedingCurve, FeedingMatrix2D


@dataclass(frozen=True)
class Feed:
    """
    Ração do catálogo já tipada (curva/matriz validadas na fronteira do repo).

    Attributes:
        id: Identificador da ração.
        code: Código comercial (chave do estoque e da agregação).
        name: Nome de exibição.
        feeding_curve: Curva 1-D opcional.
        feeding_matrix: Matriz 2-D opcional (temperatura x peso).
    """
    id: str
    code: str
    name: str
    feeding_curve: Optional[FeedingCurve] = None
    feeding_matrix: Optional[FeedingMatrix2D] = None

    def __post_init__(self):
        if not str(self.code).strip():
            raise ValueError("Código da ração não pode estar vazio.")


@dataclass(frozen=True)
class FeedInfo:
    """Ração escolhida para o dia e a taxa resolvida."""
    feed_id: str
    feed_code: str
    feed_name: str
    feeding_rate_percent: float
    daily_feed_kg: float
    fcr: Optional[float] = None
    used_matrix_2d: bool = False
    bounding_box: Optional[Tuple[float, float, float, float]] = None

    @property
    def path(self) -> FeedPath:
        return FeedPath.MATRIX_2D if self.used_matrix_2d else FeedPath.CURVE_1D


@dataclass(frozen=True)
class FeedSelection:
    """
    Selected(info) | NoAssignment | LookupFailed(reason).

    Use os construtores `selected`, `no_assignment` e `lookup_failed`.
    """
    status: SelectionStatus
    info: Optional[FeedInfo] = None
    reason: str = ""

    @staticmethod
    def selected(info: FeedInfo) -> "FeedSelection":
        return FeedSelection(SelectionStatus.SELECTED, info=info)

    @staticmethod
    def no_assignment(reason: str = "") -> "FeedSelection":
        return FeedSelection(SelectionStatus.NO_ASSIGNMENT, reason=reason)

    @staticmethod
    def lookup_failed(reason: str) -> "FeedSelection":
        return FeedSelection(SelectionStatus.LOOKUP_FAILED, reason=reason)

    @property
    def is_selected(self) -> bool:
        return self.status is SelectionStatus.SELECTED
