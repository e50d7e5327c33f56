# aquaforecast/domain/use_cases/forecast_feed_consumption_use_case.py
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import math
import time

import numpy as np

from aquaforecast.domain.entities.feed_forecast import (
    ContributingTank, FeedConsumptionByType, FeedForecastSummary, ForecastAlert,
    ReorderSuggestion, SkippedTank,
)
from aquaforecast.domain.entities.growth_projection import GrowthSimulationResult
from aquaforecast.domain.enums import ForecastAlertType
from aquaforecast.domain.repositories.feed_catalog_repository import IFeedCatalogRepository
from aquaforecast.domain.repositories.tank_state_repository import ITankStateRepository
from aquaforecast.domain.use_cases.simulate_growth_use_case import (
    GrowthSimulationInput, SimulateGrowthUseCase, resolve_tank_sgr,
)
from aquaforecast.domain.value_objects import SimulationDefaults, TankSnapshot, check_mortality_rate
from aquaforecast.infrastructure.feeding.feeding_matrix import round2

log = logging.getLogger("aquaforecast.usecases.forecast")


@dataclass(frozen=True)
class FeedForecastInput:
    """
    Parâmetros opcionais da previsão; None = padrão de SimulationDefaults.

    Atributos:
        forecast_days: Horizonte (dias).
        lead_time_days: Prazo de entrega do fornecedor.
        safety_stock_days: Estoque de segurança desejado.
        mortality_rate: Mortalidade diária usada em todos os tanques.
        temperature_forecast: Temperatura por dia (fallback 15 °C).
        start_date: Dia 0 da previsão (padrão: hoje).
        timeout_seconds: Tempo máximo da simulação; estourou → previsão parcial.
        max_workers: Threads para simular tanques em paralelo (1 = sequencial).
    """
    forecast_days: Optional[int] = None
    lead_time_days: Optional[int] = None
    safety_stock_days: Optional[int] = None
    mortality_rate: Optional[float] = None
    temperature_forecast: Optional[Sequence[Optional[float]]] = None
    start_date: Optional[date] = None
    timeout_seconds: Optional[float] = None
    max_workers: Optional[int] = None

    def __post_init__(self):
        if self.mortality_rate is not None:
            check_mortality_rate(self.mortality_rate)


@dataclass
class _FeedAccumulator:
    """Consumo dobrado de todos os tanques para um código de ração."""
    feed_id: str
    feed_code: str
    feed_name: str
    daily: List[float]
    tanks: Dict[str, List] = field(default_factory=dict)  # tank_id -> [rótulo, kg]


def find_stockout_day(daily_consumption: Sequence[float], current_stock: float) -> Optional[int]:
    """
    Primeiro dia em que o consumo acumulado alcança o estoque atual.
    None = o estoque não acaba dentro da série.
    """
    if not len(daily_consumption):
        return None
    cumulative = np.cumsum(np.asarray(daily_consumption, dtype=float))
    hits = np.nonzero(cumulative >= current_stock)[0]
    return int(hits[0]) if hits.size else None


def calculate_reorder_date(current_stock: float, daily_consumption_rate: float,
                           lead_time_days: int, safety_stock_days: int,
                           today: Optional[date] = None) -> Optional[ReorderSuggestion]:
    """
    Data recomendada de pedido pela taxa média de consumo.
    Taxa <= 0 → None (sem consumo, sem pedido).
    """
    if daily_consumption_rate <= 0:
        return None
    days_of_stock = current_stock / daily_consumption_rate
    days_until = int(math.floor(max(0.0, days_of_stock - lead_time_days - safety_stock_days)))
    return ReorderSuggestion(reorder_date=(today or date.today()) + timedelta(days=days_until),
                             days_until_reorder=days_until)


class ForecastFeedConsumptionUseCase:
    """
    Agrega a previsão de consumo de ração de todos os tanques com peixe:
    - SGR de todos os lotes resolvido em uma consulta antes das simulações
    - simulação por tanque (independente, paralelizável)
    - consumo diário dobrado por código de ração
    - ruptura, data/quantidade de pedido e alertas por ração

    Falhas de leitura de um tanque ou do estoque não derrubam a previsão:
    o item afetado fica de fora e a causa vai para `skipped_tanks`/`warnings`.
    """

    def __init__(
        self,
        tank_repo: ITankStateRepository,
        feed_catalog: IFeedCatalogRepository,
        growth_simulator: SimulateGrowthUseCase,
        defaults: Optional[SimulationDefaults] = None,
    ) -> None:
        self.tank_repo = tank_repo
        self.feed_catalog = feed_catalog
        self.growth_simulator = growth_simulator
        self.defaults = defaults or growth_simulator.defaults

    def execute(self, inp: Optional[FeedForecastInput] = None) -> FeedForecastSummary:
        """
        Executa a previsão.

        Returns:
            FeedForecastSummary sempre completo (pode ter menos rações/tanques
            que o esperado, ou sentinelas de "sem ruptura no horizonte").
        """
        inp = inp or FeedForecastInput()
        d = self.defaults
        days = inp.forecast_days if inp.forecast_days is not None else d.forecast_days
        days = max(1, int(days))
        lead = inp.lead_time_days if inp.lead_time_days is not None else d.lead_time_days
        safety = inp.safety_stock_days if inp.safety_stock_days is not None else d.safety_stock_days
        start = inp.start_date or date.today()
        warnings: List[str] = []
        skipped: List[SkippedTank] = []

        log.info("forecast_started days=%s lead=%s safety=%s", days, lead, safety)

        # 0) snapshot novo por execução: estoque/tanques relidos da origem
        self.tank_repo.refresh()
        self.feed_catalog.refresh()

        # 1) tanques com peixe
        tanks = self._live_tanks(warnings, skipped)

        # 2) SGR em lote (antes do laço por tanque)
        sgr_by_tank = resolve_tank_sgr(tanks, self.tank_repo, d)

        # 3) scatter/gather das simulações
        results, partial = self._simulate_all(tanks, sgr_by_tank, inp, days, start, skipped)

        # 4) dobra por código de ração (na ordem original dos tanques)
        by_code = self._fold(tanks, results, days)

        # 5..8) estoque, ruptura, pedido e alertas
        inventory, inventory_ok = self._inventory(warnings)
        by_feed_type: List[FeedConsumptionByType] = []
        alerts: List[ForecastAlert] = []
        for acc in by_code.values():
            item = self._consumption_for(acc, inventory.get(acc.feed_code, 0.0), days, lead, safety, start)
            by_feed_type.append(item)
            if inventory_ok:
                alert = self._alert_for(item, lead, safety)
                if alert is not None:
                    alerts.append(alert)

        alerts.sort(key=lambda a: a.days_until_stockout)
        summary = FeedForecastSummary(
            forecast_days=days,
            start_date=start,
            end_date=start + timedelta(days=days),
            by_feed_type=by_feed_type,
            alerts=alerts,
            total_consumption=round2(sum(f.total_consumption for f in by_feed_type)),
            total_current_stock=round2(sum(inventory.values())),
            tanks_simulated=len(results),
            partial=partial,
            skipped_tanks=skipped,
            warnings=warnings,
        )
        log.info("forecast_done tanks=%s feeds=%s alerts=%s partial=%s",
                 summary.tanks_simulated, len(by_feed_type), len(alerts), partial)
        return summary

    # ---------- etapas ----------
    def _live_tanks(self, warnings: List[str], skipped: List[SkippedTank]) -> List[TankSnapshot]:
        try:
            tanks = list(self.tank_repo.get_live_tanks())
        except Exception as e:
            log.error("live_tanks_lookup_failed err=%s", e)
            warnings.append(f"falha ao carregar tanques: {e}")
            return []

        usable: List[TankSnapshot] = []
        for t in tanks:
            if t.current_count <= 0:
                continue
            if t.current_weight_g <= 0:
                log.warning("tank_skipped tank=%s reason=no_weight", t.tank_id)
                skipped.append(SkippedTank(t.tank_id, "sem peso médio"))
                continue
            usable.append(t)
        log.info("live_tanks found=%s usable=%s", len(tanks), len(usable))
        return usable

    def _simulate_tank(self, tank: TankSnapshot, sgr: float, inp: FeedForecastInput,
                       days: int, start: date) -> GrowthSimulationResult:
        return self.growth_simulator.execute(GrowthSimulationInput(
            current_weight_g=tank.current_weight_g,
            current_count=tank.current_count,
            sgr_percent=sgr,
            projection_days=days,
            batch_id=tank.batch_id,
            mortality_rate=inp.mortality_rate,
            temperature_forecast=inp.temperature_forecast,
            start_date=start,
        ))

    def _simulate_all(self, tanks: List[TankSnapshot], sgr_by_tank: Dict[str, float],
                      inp: FeedForecastInput, days: int, start: date,
                      skipped: List[SkippedTank]) -> Tuple[Dict[str, GrowthSimulationResult], bool]:
        """
        Roda todas as simulações. Com timeout, tanques não concluídos ficam de
        fora e a previsão é marcada como parcial.
        """
        workers = inp.max_workers if inp.max_workers is not None else self.defaults.max_workers
        results: Dict[str, GrowthSimulationResult] = {}
        partial = False

        if workers <= 1 or len(tanks) <= 1:
            deadline = None if inp.timeout_seconds is None else time.monotonic() + inp.timeout_seconds
            for tank in tanks:
                if deadline is not None and time.monotonic() > deadline:
                    partial = True
                    skipped.append(SkippedTank(tank.tank_id, "tempo limite excedido"))
                    continue
                try:
                    results[tank.tank_id] = self._simulate_tank(tank, sgr_by_tank[tank.tank_id], inp, days, start)
                except Exception as e:
                    log.exception("tank_simulation_failed tank=%s", tank.tank_id)
                    skipped.append(SkippedTank(tank.tank_id, f"falha na simulação: {e}"))
            return results, partial

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="forecast")
        try:
            futures = {
                pool.submit(self._simulate_tank, tank, sgr_by_tank[tank.tank_id], inp, days, start): tank
                for tank in tanks
            }
            done, not_done = wait(futures, timeout=inp.timeout_seconds)
        finally:
            # não espera tanques atrasados: o que não terminou vira parcial
            pool.shutdown(wait=False, cancel_futures=True)

        for fut in done:
            tank = futures[fut]
            try:
                results[tank.tank_id] = fut.result()
            except Exception as e:
                log.error("tank_simulation_failed tank=%s err=%s", tank.tank_id, e)
                skipped.append(SkippedTank(tank.tank_id, f"falha na simulação: {e}"))
        for fut in not_done:
            tank = futures[fut]
            partial = True
            log.warning("tank_simulation_timeout tank=%s", tank.tank_id)
            skipped.append(SkippedTank(tank.tank_id, "tempo limite excedido"))
        return results, partial

    @staticmethod
    def _fold(tanks: List[TankSnapshot], results: Dict[str, GrowthSimulationResult],
              days: int) -> Dict[str, _FeedAccumulator]:
        by_code: Dict[str, _FeedAccumulator] = {}
        for tank in tanks:
            sim = results.get(tank.tank_id)
            if sim is None:
                continue
            for p in sim.projections:
                if not p.feed_code or p.daily_feed_kg <= 0 or p.day > days:
                    continue
                acc = by_code.get(p.feed_code)
                if acc is None:
                    acc = _FeedAccumulator(
                        feed_id=p.feed_id or "",
                        feed_code=p.feed_code,
                        feed_name=p.feed_name or p.feed_code,
                        daily=[0.0] * (days + 1),
                    )
                    by_code[p.feed_code] = acc
                acc.daily[p.day] += p.daily_feed_kg
                contrib = acc.tanks.setdefault(tank.tank_id, [tank.label, 0.0])
                contrib[1] += p.daily_feed_kg
        return by_code

    def _inventory(self, warnings: List[str]) -> Tuple[Dict[str, float], bool]:
        try:
            return dict(self.feed_catalog.get_inventory_by_feed_code()), True
        except Exception as e:
            log.error("inventory_lookup_failed err=%s", e)
            warnings.append(f"estoque indisponível, alertas suprimidos: {e}")
            return {}, False

    def _consumption_for(self, acc: _FeedAccumulator, current_stock: float, days: int,
                         lead: int, safety: int, start: date) -> FeedConsumptionByType:
        daily = [round2(v) for v in acc.daily]
        total = round2(sum(daily))

        stockout_day = find_stockout_day(daily, current_stock)
        days_until_stockout = stockout_day if stockout_day is not None else days + 1
        stockout_date = start + timedelta(days=days_until_stockout) if days_until_stockout <= days else None
        # ruptura dentro do lead time: pedido já está atrasado, sem data
        reorder_date = (stockout_date - timedelta(days=lead)
                        if stockout_date is not None and days_until_stockout > lead else None)

        avg_daily = total / days
        reorder_quantity = int(math.ceil(avg_daily * (self.defaults.reorder_window_days + safety)))

        return FeedConsumptionByType(
            feed_id=acc.feed_id,
            feed_code=acc.feed_code,
            feed_name=acc.feed_name,
            daily_consumption=daily,
            total_consumption=total,
            current_stock=float(current_stock),
            days_until_stockout=days_until_stockout,
            stockout_date=stockout_date,
            reorder_date=reorder_date,
            reorder_quantity=reorder_quantity,
            contributing_tanks=[ContributingTank(tid, label, round2(kg))
                                for tid, (label, kg) in acc.tanks.items()],
        )

    def _alert_for(self, item: FeedConsumptionByType, lead: int, safety: int) -> Optional[ForecastAlert]:
        d = item.days_until_stockout
        name = item.feed_name
        if d <= self.defaults.stockout_imminent_days:
            kind, msg = ForecastAlertType.STOCKOUT_IMMINENT, f"{name} vai acabar em {d} dias!"
        elif d <= lead:
            kind, msg = ForecastAlertType.REORDER_NOW, f"Faça o pedido de {name} agora - restam {d} dias de estoque"
        elif d <= lead + safety:
            kind, msg = ForecastAlertType.LOW_STOCK, f"{name} com estoque baixo - restam {d} dias de estoque"
        else:
            return None
        log.warning("forecast_alert feed=%s type=%s days=%s", item.feed_code, kind.name, d)
        return ForecastAlert(feed_id=item.feed_id, feed_code=item.feed_code, type=kind,
                             message=msg, days_until_stockout=d)
