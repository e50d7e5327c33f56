# aquaforecast/domain/use_cases/select_feed_use_case.py
from __future__ import annotations
from typing import Iterable, List, Optional
import logging
import math

from aquaforecast.domain.entities.feed import Feed, FeedInfo, FeedSelection
from aquaforecast.domain.repositories.feed_catalog_repository import IFeedCatalogRepository
from aquaforecast.domain.repositories.batch_assignment_repository import IBatchAssignmentRepository
from aquaforecast.domain.value_objects import FeedAssignmentEntry, SimulationDefaults
from aquaforecast.infrastructure.feeding.feeding_curve import resolve_rate, resolve_fcr
from aquaforecast.infrastructure.feeding.feeding_matrix import interpolate, round2

log = logging.getLogger("aquaforecast.usecases.feed_selector")


def calculate_daily_feed(biomass_kg: float, feeding_rate_percent: float) -> float:
    """
    Ração diária (kg) = biomassa × taxa / 100, em 2 casas.
    Nunca negativa e nunca NaN (entradas inválidas → 0).
    """
    kg = biomass_kg * feeding_rate_percent / 100.0
    if not math.isfinite(kg) or kg <= 0:
        return 0.0
    return round2(kg)


def match_assignment(assignment: Iterable[FeedAssignmentEntry],
                     avg_weight_g: float) -> Optional[FeedAssignmentEntry]:
    """
    Primeira faixa ativa que contém o peso, ordenando por prioridade
    crescente e depois por peso mínimo crescente.
    """
    ordered = sorted((e for e in assignment if e.active),
                     key=lambda e: (e.priority, e.min_weight_g))
    for entry in ordered:
        if entry.contains(avg_weight_g):
            return entry
    return None


class SelectFeedUseCase:
    """
    Seleciona a ração do lote para o peso/temperatura do dia:
    - casa a faixa de peso atribuída ao lote
    - resolve a taxa pela matriz 2-D (se houver matriz E temperatura)
      ou pela curva 1-D (fallback)
    - calcula a ração diária

    Falhas de leitura viram `LOOKUP_FAILED` e são apenas logadas: a seleção
    nunca interrompe o laço de simulação de quem chama.
    """

    def __init__(
        self,
        feed_catalog: IFeedCatalogRepository,
        assignment_repo: Optional[IBatchAssignmentRepository] = None,
        defaults: Optional[SimulationDefaults] = None,
    ) -> None:
        """
        Args:
            feed_catalog: Catálogo tipado de rações.
            assignment_repo: Fonte das faixas por lote (para `select_for_batch_id`).
            defaults: Padrões da simulação (taxa 3.0, FCR 1.0...).
        """
        self.feed_catalog = feed_catalog
        self.assignment_repo = assignment_repo
        self.defaults = defaults or SimulationDefaults()

    def refresh(self) -> None:
        """Nova execução: rações voltam a ser lidas do catálogo."""
        self.feed_catalog.refresh()

    def select(
        self,
        assignment: Iterable[FeedAssignmentEntry],
        avg_weight_g: float,
        biomass_kg: float,
        water_temperature: Optional[float] = None,
        feed_catalog: Optional[IFeedCatalogRepository] = None,
    ) -> FeedSelection:
        """
        Executa a seleção e devolve a variante etiquetada.

        Args:
            assignment: Atribuições do lote (ativas e inativas; inativas são ignoradas).
            avg_weight_g: Peso médio atual (g).
            biomass_kg: Biomassa atual (kg) para a ração diária.
            water_temperature: Temperatura (°C); sem ela a matriz 2-D não é usada.
            feed_catalog: Catálogo alternativo (por padrão o injetado).

        Returns:
            FeedSelection: SELECTED, NO_ASSIGNMENT ou LOOKUP_FAILED.
        """
        catalog = feed_catalog or self.feed_catalog

        entry = match_assignment(assignment, avg_weight_g)
        if entry is None:
            log.debug("feed_no_assignment weight=%.2f", avg_weight_g)
            return FeedSelection.no_assignment(f"nenhuma faixa cobre {avg_weight_g:.2f} g")

        try:
            feed = catalog.get_feed_by_id(entry.feed_id)
        except Exception as e:
            log.warning("feed_lookup_failed feed=%s err=%s", entry.feed_id, e)
            return FeedSelection.lookup_failed(f"erro ao buscar ração {entry.feed_id}: {e}")

        if feed is None:
            log.warning("feed_lookup_failed feed=%s err=not_found", entry.feed_id)
            return FeedSelection.lookup_failed(f"ração {entry.feed_id} não encontrada")

        try:
            info = self._resolve(feed, avg_weight_g, biomass_kg, water_temperature)
        except Exception as e:
            log.exception("feed_rate_failed feed=%s", feed.code)
            return FeedSelection.lookup_failed(f"falha ao resolver taxa de {feed.code}: {e}")
        return FeedSelection.selected(info)

    def select_feed_for_batch(
        self,
        assignment: Iterable[FeedAssignmentEntry],
        avg_weight_g: float,
        biomass_kg: float,
        water_temperature: Optional[float] = None,
        feed_catalog: Optional[IFeedCatalogRepository] = None,
    ) -> Optional[FeedInfo]:
        """Versão anulável: FeedInfo ou None ("ração desconhecida" no dia)."""
        return self.select(assignment, avg_weight_g, biomass_kg,
                           water_temperature, feed_catalog).info

    def load_assignment(self, batch_id: str) -> FeedSelection | List[FeedAssignmentEntry]:
        """
        Busca as atribuições ativas do lote.

        Returns:
            Lista de atribuições, ou FeedSelection LOOKUP_FAILED se o repositório falhar.
        """
        if self.assignment_repo is None:
            return FeedSelection.lookup_failed("repositório de atribuições não configurado")
        try:
            return list(self.assignment_repo.get_active_assignments(batch_id))
        except Exception as e:
            log.warning("assignment_lookup_failed batch=%s err=%s", batch_id, e)
            return FeedSelection.lookup_failed(f"erro ao buscar atribuições do lote {batch_id}: {e}")

    def select_for_batch_id(
        self,
        batch_id: str,
        avg_weight_g: float,
        biomass_kg: float,
        water_temperature: Optional[float] = None,
    ) -> FeedSelection:
        """Seleção buscando as atribuições do lote no repositório."""
        loaded = self.load_assignment(batch_id)
        if isinstance(loaded, FeedSelection):
            return loaded
        return self.select(loaded, avg_weight_g, biomass_kg, water_temperature)

    # ---------- helpers ----------
    def _resolve(self, feed: Feed, weight_g: float, biomass_kg: float,
                 temperature: Optional[float]) -> FeedInfo:
        """Escolhe o caminho 2-D ou 1-D e monta o FeedInfo."""
        if feed.feeding_matrix is not None and temperature is not None:
            res = interpolate(feed.feeding_matrix, temperature, weight_g, self.defaults)
            rate, fcr, box, used_2d = res.feeding_rate_percent, res.fcr, res.bounding_box, True
        else:
            rate = resolve_rate(feed.feeding_curve, weight_g, self.defaults.feeding_rate_percent)
            fcr = resolve_fcr(feed.feeding_curve, weight_g)
            box, used_2d = None, False

        if not math.isfinite(rate) or rate < 0:
            rate = self.defaults.feeding_rate_percent

        return FeedInfo(
            feed_id=feed.id,
            feed_code=feed.code,
            feed_name=feed.name,
            feeding_rate_percent=rate,
            daily_feed_kg=calculate_daily_feed(biomass_kg, rate),
            fcr=fcr,
            used_matrix_2d=used_2d,
            bounding_box=box,
        )
