# aquaforecast/domain/use_cases/simulate_growth_use_case.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence
import logging
import math

from aquaforecast.domain.entities.feed import FeedSelection
from aquaforecast.domain.entities.growth_projection import (
    FeedRequirement, GrowthProjection, GrowthSimulationResult, GrowthSummary, TankSimulationResult,
)
from aquaforecast.domain.enums import FeedPath
from aquaforecast.domain.repositories.tank_state_repository import ITankStateRepository
from aquaforecast.domain.use_cases.select_feed_use_case import SelectFeedUseCase, calculate_daily_feed
from aquaforecast.domain.value_objects import SimulationDefaults, TankSnapshot, check_mortality_rate
from aquaforecast.infrastructure.feeding.feeding_matrix import round2
from aquaforecast.infrastructure.growth import sgr_model
from aquaforecast.infrastructure.growth.sgr_model import HarvestProjection

log = logging.getLogger("aquaforecast.usecases.growth")


@dataclass(frozen=True)
class GrowthSimulationInput:
    """
    Entrada da simulação.

    - Com `tank_id`, peso/quantidade zerados são completados pelo snapshot do
      tanque e o lote do tanque define as rações.
    - Sem `tank_id`, usa os valores manuais e `batch_id` (se houver).
    """
    current_weight_g: float = 0.0
    current_count: int = 0
    sgr_percent: float = 0.0
    projection_days: int = 30
    tank_id: Optional[str] = None
    batch_id: Optional[str] = None
    mortality_rate: Optional[float] = None
    temperature_forecast: Optional[Sequence[Optional[float]]] = None
    start_date: Optional[date] = None
    target_weight_g: Optional[float] = None

    def __post_init__(self):
        if self.mortality_rate is not None:
            check_mortality_rate(self.mortality_rate)


def resolve_tank_sgr(tanks: Sequence[TankSnapshot],
                     tank_repo: Optional[ITankStateRepository],
                     defaults: SimulationDefaults) -> Dict[str, float]:
    """
    SGR por tanque com UMA consulta em lote ao repositório.

    Prioridade: SGR cadastrado do lote → SGR do snapshot → padrão (1.5).
    Falha na consulta em lote só é logada (cai para snapshot/padrão).
    """
    batch_ids = sorted({t.batch_id for t in tanks if t.batch_id})
    batch_sgr: Dict[str, float] = {}
    if batch_ids and tank_repo is not None:
        try:
            batch_sgr = dict(tank_repo.get_batch_sgr(batch_ids))
        except Exception as e:
            log.warning("batch_sgr_lookup_failed batches=%s err=%s", len(batch_ids), e)

    out: Dict[str, float] = {}
    for t in tanks:
        sgr = batch_sgr.get(t.batch_id) if t.batch_id else None
        if not sgr:
            sgr = t.sgr_percent or defaults.sgr_percent
        out[t.tank_id] = float(sgr)
    return out


class SimulateGrowthUseCase:
    """
    Projeta dia a dia peso, quantidade, biomassa, mortalidade e ração de um
    tanque usando o modelo exponencial de SGR. Também expõe o cálculo/estimativa
    de SGR e a projeção da data de despesca.
    """

    def __init__(
        self,
        feed_selector: SelectFeedUseCase,
        tank_repo: Optional[ITankStateRepository] = None,
        defaults: Optional[SimulationDefaults] = None,
    ) -> None:
        """
        Args:
            feed_selector: Seletor de ração (curva 1-D / matriz 2-D).
            tank_repo: Estado dos tanques (modo por tanque e multi-tanque).
            defaults: Padrões da simulação (temperatura 15 °C, mortalidade...).
        """
        self.feed_selector = feed_selector
        self.tank_repo = tank_repo
        self.defaults = defaults or feed_selector.defaults

    def execute(self, inp: GrowthSimulationInput) -> GrowthSimulationResult:
        """
        Roda a projeção para os dias 0..N.

        Fluxo por dia:
            1) dia 0 é a observação semente (sem mortalidade, sem ração)
            2) dia > 0: mortos = floor(qtd × taxa); qtd = max(1, qtd − mortos)
            3) biomassa = peso × qtd / 1000
            4) temperatura do dia (previsão ou 15 °C)
            5) ração pelo seletor; sem ração → tabela padrão por peso
            6) ração diária (0 no dia 0) e acumulado
            7) grava a linha
            8) cresce o peso: peso × e^(SGR/100)

        Returns:
            GrowthSimulationResult com projeções, resumo e necessidade por ração.

        Raises:
            ValueError: quantidade inicial <= 0 (nada a simular).
        """
        weight, count, batch_id = self._seed(inp)
        if count <= 0:
            raise ValueError(f"Simulação sem peixes (tanque={inp.tank_id}, quantidade={count}).")
        sgr = float(inp.sgr_percent)
        days = max(0, int(inp.projection_days))
        mortality_rate = self.defaults.mortality_rate if inp.mortality_rate is None else inp.mortality_rate
        start = inp.start_date or date.today()

        assignment = None
        if batch_id:
            loaded = self.feed_selector.load_assignment(batch_id)
            if isinstance(loaded, FeedSelection):
                # lote sem atribuições legíveis: simula só com a tabela padrão
                log.warning("growth_assignment_unavailable batch=%s reason=%s", batch_id, loaded.reason)
            else:
                assignment = loaded

        projections: List[GrowthProjection] = []
        requirements: Dict[str, FeedRequirement] = {}
        cumulative_feed = 0.0
        cumulative_mortality = 0

        for day in range(days + 1):
            daily_mortality = 0
            if day > 0:
                daily_mortality = math.floor(count * mortality_rate)
                # população nunca chega a zero (evita divisão por zero em biomassa/taxa)
                count = max(1, count - daily_mortality)
            cumulative_mortality += daily_mortality

            biomass_kg = weight * count / 1000.0
            temperature = self._temperature_for(inp.temperature_forecast, day)

            feed_info = None
            if assignment is not None:
                feed_info = self.feed_selector.select(assignment, weight, biomass_kg, temperature).info

            if feed_info is not None:
                rate = feed_info.feeding_rate_percent
                source = feed_info.path
            else:
                rate = sgr_model.default_feeding_rate(weight)
                source = FeedPath.DEFAULT_TABLE

            daily_feed = 0.0 if day == 0 else calculate_daily_feed(biomass_kg, rate)
            cumulative_feed += daily_feed

            if feed_info is not None and daily_feed > 0:
                req = requirements.get(feed_info.feed_code)
                if req is None:
                    requirements[feed_info.feed_code] = FeedRequirement(
                        feed_code=feed_info.feed_code, feed_name=feed_info.feed_name,
                        total_kg=daily_feed, days_used=1, start_day=day, end_day=day,
                    )
                else:
                    req.total_kg = round2(req.total_kg + daily_feed)
                    req.days_used += 1
                    req.end_day = day

            projections.append(GrowthProjection(
                day=day,
                date=start + timedelta(days=day),
                avg_weight_g=round2(weight),
                fish_count=count,
                biomass_kg=round2(biomass_kg),
                sgr=0.0 if day == 0 else sgr,
                feeding_rate_percent=round2(rate),
                daily_feed_kg=daily_feed,
                cumulative_feed_kg=round2(cumulative_feed),
                temperature=temperature,
                mortality=daily_mortality,
                cumulative_mortality=cumulative_mortality,
                feed_id=feed_info.feed_id if feed_info else None,
                feed_code=feed_info.feed_code if feed_info else None,
                feed_name=feed_info.feed_name if feed_info else None,
                fcr=feed_info.fcr if feed_info else None,
                rate_source=source,
            ))

            weight = sgr_model.grow(weight, sgr)

        summary = self._summarize(projections, cumulative_feed, cumulative_mortality, inp, start)
        log.info("growth_simulated tank=%s batch=%s days=%s end_weight=%.2f total_feed=%.2f",
                 inp.tank_id, batch_id, days, summary.end_weight, summary.total_feed_kg)
        return GrowthSimulationResult(
            projections=projections,
            summary=summary,
            feed_requirements=list(requirements.values()),
        )

    def simulate_multi_tank(
        self,
        tank_ids: Iterable[str],
        projection_days: int,
        mortality_rate: Optional[float] = None,
        temperature_forecast: Optional[Sequence[Optional[float]]] = None,
        start_date: Optional[date] = None,
    ) -> List[TankSimulationResult]:
        """
        Modo comparação: simula cada tanque de forma independente.
        Tanques sem dados utilizáveis (ausentes, sem peixe, sem peso) são pulados.
        """
        tank_ids = list(tank_ids)
        log.info("multi_tank_simulation tanks=%s days=%s", len(tank_ids), projection_days)
        self.refresh()

        seeds: List[TankSnapshot] = []
        for tank_id in tank_ids:
            tank = self._get_tank(tank_id)
            if tank is None or tank.current_count <= 0 or tank.current_weight_g <= 0:
                log.warning("tank_skipped tank=%s reason=no_valid_data", tank_id)
                continue
            seeds.append(tank)

        sgr_by_tank = resolve_tank_sgr(seeds, self.tank_repo, self.defaults)
        results: List[TankSimulationResult] = []
        for tank in seeds:
            sgr = sgr_by_tank[tank.tank_id]
            sim = self.execute(GrowthSimulationInput(
                current_weight_g=tank.current_weight_g,
                current_count=tank.current_count,
                sgr_percent=sgr,
                projection_days=projection_days,
                tank_id=tank.tank_id,
                batch_id=tank.batch_id,
                mortality_rate=mortality_rate,
                temperature_forecast=temperature_forecast,
                start_date=start_date,
            ))
            results.append(TankSimulationResult(
                tank_id=tank.tank_id, simulation=sim, tank_name=tank.tank_name,
                tank_code=tank.tank_code, batch_id=tank.batch_id, sgr_percent=sgr,
            ))
        return results

    def get_active_tanks(self) -> List[TankSnapshot]:
        """Tanques com peixe (quantidade > 0) para seleção na interface."""
        if self.tank_repo is None:
            return []
        self.tank_repo.refresh()
        try:
            return [t for t in self.tank_repo.get_live_tanks() if t.current_count > 0]
        except Exception as e:
            log.warning("live_tanks_lookup_failed err=%s", e)
            return []

    # ---------- SGR / despesca ----------
    @staticmethod
    def calculate_sgr(start_weight_g: float, end_weight_g: float, days: float) -> float:
        return sgr_model.calculate_sgr(start_weight_g, end_weight_g, days)

    @staticmethod
    def estimate_sgr(species: Optional[str], temperature: float) -> float:
        return sgr_model.estimate_sgr(species, temperature)

    @staticmethod
    def project_harvest_date(current_weight_g: float, target_weight_g: float, sgr_percent: float,
                             start_date: Optional[date] = None) -> HarvestProjection:
        return sgr_model.project_harvest_date(current_weight_g, target_weight_g, sgr_percent, start_date)

    def refresh(self) -> None:
        """Descarta leituras de execuções anteriores (tanques, lotes, rações)."""
        if self.tank_repo is not None:
            self.tank_repo.refresh()
        self.feed_selector.refresh()

    # ---------- helpers ----------
    def _get_tank(self, tank_id: str) -> Optional[TankSnapshot]:
        if self.tank_repo is None:
            return None
        try:
            return self.tank_repo.get_tank(tank_id)
        except Exception as e:
            log.warning("tank_lookup_failed tank=%s err=%s", tank_id, e)
            return None

    def _seed(self, inp: GrowthSimulationInput):
        """Peso, quantidade e lote iniciais (manual, completado pelo tanque se houver)."""
        weight, count, batch_id = float(inp.current_weight_g), int(inp.current_count), inp.batch_id
        if inp.tank_id and (not weight or not count or not batch_id):
            tank = self._get_tank(inp.tank_id)
            if tank is not None:
                batch_id = tank.batch_id or batch_id
                weight = weight or tank.current_weight_g
                count = count or tank.current_count
                log.info("tank_seed tank=%s weight=%.2f count=%s", tank.label, weight, count)
        return weight, count, batch_id

    def _temperature_for(self, forecast: Optional[Sequence[Optional[float]]], day: int) -> float:
        if forecast is not None and day < len(forecast) and forecast[day] is not None:
            return float(forecast[day])
        return self.defaults.temperature_c

    @staticmethod
    def _summarize(projections: Sequence[GrowthProjection], cumulative_feed: float,
                   cumulative_mortality: int, inp: GrowthSimulationInput, start: date) -> GrowthSummary:
        first, last = projections[0], projections[-1]
        gain = last.biomass_kg - first.biomass_kg
        # perda líquida ou período estável: FCR reportado como 0
        avg_fcr = cumulative_feed / gain if gain > 0 else 0.0

        harvest_date = harvest_weight = days_to_harvest = None
        if inp.target_weight_g:
            hp = sgr_model.project_harvest_date(first.avg_weight_g, inp.target_weight_g,
                                                inp.sgr_percent, start)
            harvest_date, days_to_harvest = hp.harvest_date, hp.days_to_harvest
            harvest_weight = round2(sgr_model.grow(first.avg_weight_g, inp.sgr_percent, hp.days_to_harvest))

        return GrowthSummary(
            start_weight=first.avg_weight_g,
            end_weight=last.avg_weight_g,
            start_biomass=first.biomass_kg,
            end_biomass=last.biomass_kg,
            total_feed_kg=round2(cumulative_feed),
            avg_fcr=round2(avg_fcr),
            total_mortality=cumulative_mortality,
            harvest_date=harvest_date,
            harvest_weight=harvest_weight,
            days_to_harvest=days_to_harvest,
        )
