# tests/unit/test_forecast.py
from __future__ import annotations
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional
import threading

import pytest

from aquaforecast.domain.entities.feed import Feed
from aquaforecast.domain.entities.growth_projection import (
    GrowthProjection, GrowthSimulationResult, GrowthSummary,
)
from aquaforecast.domain.enums import FeedPath, ForecastAlertType
from aquaforecast.domain.repositories.feed_catalog_repository import IFeedCatalogRepository
from aquaforecast.domain.repositories.tank_state_repository import ITankStateRepository
from aquaforecast.domain.use_cases.forecast_feed_consumption_use_case import (
    FeedForecastInput, ForecastFeedConsumptionUseCase, calculate_reorder_date, find_stockout_day,
)
from aquaforecast.domain.use_cases.simulate_growth_use_case import GrowthSimulationInput
from aquaforecast.domain.value_objects import SimulationDefaults, TankSnapshot

START = date(2026, 1, 1)

# ---------- Fakes em memória ----------

class FakeTankRepo(ITankStateRepository):
    def __init__(self, tanks: List[TankSnapshot], batch_sgr: Optional[Dict[str, float]] = None) -> None:
        self.tanks = tanks
        self.batch_sgr = batch_sgr or {}
        self.sgr_calls = 0
        self.get_tank_calls = 0
        self.refreshes = 0
    def refresh(self) -> None:
        self.refreshes += 1
    def get_live_tanks(self) -> List[TankSnapshot]:
        return list(self.tanks)
    def get_tank(self, tank_id: str) -> Optional[TankSnapshot]:
        self.get_tank_calls += 1
        return next((t for t in self.tanks if t.tank_id == tank_id), None)
    def get_batch_sgr(self, batch_ids: Iterable[str]) -> Dict[str, float]:
        self.sgr_calls += 1
        return {b: self.batch_sgr[b] for b in batch_ids if b in self.batch_sgr}

class FakeCatalog(IFeedCatalogRepository):
    def __init__(self, inventory: Optional[Dict[str, float]] = None, broken: bool = False) -> None:
        self.inventory = inventory or {}
        self.broken = broken
        self.refreshes = 0
    def refresh(self) -> None:
        self.refreshes += 1
    def get_feed_by_id(self, feed_id: str) -> Optional[Feed]:
        return None
    def get_inventory_by_feed_code(self) -> Dict[str, float]:
        if self.broken:
            raise ConnectionError("estoque offline")
        return dict(self.inventory)

class FlatGrowthSimulator:
    """
    Simulador fixo: cada lote consome `kg_per_day` de uma ração todos os dias.
    Lotes especiais: 'BAD' levanta erro; 'SLOW' espera o evento `release`.
    """
    def __init__(self, feed_by_batch: Dict[str, tuple], defaults: Optional[SimulationDefaults] = None) -> None:
        self.feed_by_batch = feed_by_batch
        self.defaults = defaults or SimulationDefaults()
        self.inputs: List[GrowthSimulationInput] = []
        self.release = threading.Event()
        self._lock = threading.Lock()

    def execute(self, inp: GrowthSimulationInput) -> GrowthSimulationResult:
        with self._lock:
            self.inputs.append(inp)
        if inp.batch_id == "BAD":
            raise RuntimeError("dados corrompidos")
        if inp.batch_id == "SLOW":
            self.release.wait(5)
        code, kg = self.feed_by_batch.get(inp.batch_id, (None, 0.0))
        projections = [
            GrowthProjection(
                day=d, date=inp.start_date + timedelta(days=d), avg_weight_g=inp.current_weight_g,
                fish_count=inp.current_count, biomass_kg=100.0, sgr=inp.sgr_percent,
                feeding_rate_percent=2.0, daily_feed_kg=kg, cumulative_feed_kg=kg * (d + 1),
                temperature=15.0, mortality=0, cumulative_mortality=0,
                feed_id=f"id-{code}" if code else None, feed_code=code, feed_name=code,
                rate_source=FeedPath.CURVE_1D if code else FeedPath.DEFAULT_TABLE,
            )
            for d in range(inp.projection_days + 1)
        ]
        summary = GrowthSummary(inp.current_weight_g, inp.current_weight_g, 100.0, 100.0,
                                kg * len(projections), 0.0, 0)
        return GrowthSimulationResult(projections, summary)


def tank(tid, batch, weight=100.0, count=1000, sgr=None):
    return TankSnapshot(tid, weight, count, sgr_percent=sgr, batch_id=batch, tank_code=f"C-{tid}")

def forecast_uc(tanks, feed_by_batch, inventory=None, broken=False, batch_sgr=None):
    repo = FakeTankRepo(tanks, batch_sgr)
    sim = FlatGrowthSimulator(feed_by_batch)
    uc = ForecastFeedConsumptionUseCase(repo, FakeCatalog(inventory, broken), sim, SimulationDefaults())
    return uc, repo, sim

TWO_TANKS = [tank("T1", "B1"), tank("T2", "B2")]
FLAT = {"B1": ("GROWER1", 2.5), "B2": ("GROWER1", 2.5)}

def run(uc, **kw):
    params = dict(forecast_days=30, lead_time_days=7, safety_stock_days=5, start_date=START, max_workers=1)
    params.update(kw)
    return uc.execute(FeedForecastInput(**params))

# ---------- Ruptura / pedido ----------

def test_find_stockout_day_flat_series():
    assert find_stockout_day([5.0] * 31, 47) == 9

def test_find_stockout_day_edges():
    assert find_stockout_day([], 10) is None
    assert find_stockout_day([1.0, 1.0], 10) is None
    assert find_stockout_day([5.0, 5.0], 0) == 0
    assert find_stockout_day([5.0, 5.0], 10) == 1

def test_calculate_reorder_date():
    s = calculate_reorder_date(100, 5, 7, 5, START)
    assert s.days_until_reorder == 8
    assert s.reorder_date == date(2026, 1, 9)
    assert calculate_reorder_date(10, 5, 7, 5, START).days_until_reorder == 0
    assert calculate_reorder_date(100, 0, 7, 5, START) is None

# ---------- Agregação ----------

def test_two_tanks_share_feed_and_stockout_day():
    uc, _, _ = forecast_uc(TWO_TANKS, FLAT, inventory={"GROWER1": 47})
    s = run(uc)
    (item,) = s.by_feed_type
    assert item.feed_code == "GROWER1"
    assert item.daily_consumption[:3] == [5.0, 5.0, 5.0]
    assert len(item.daily_consumption) == 31
    assert item.days_until_stockout == 9
    assert item.stockout_date == date(2026, 1, 10)
    assert item.reorder_date == date(2026, 1, 3)
    assert item.total_consumption == 155.0
    assert item.reorder_quantity == 181  # ceil(155/30 × 35)
    assert [(c.tank_id, c.tank_label, c.consumption_kg) for c in item.contributing_tanks] == [
        ("T1", "C-T1", 77.5), ("T2", "C-T2", 77.5)]
    assert s.tanks_simulated == 2
    assert s.end_date == date(2026, 1, 31)
    assert s.total_current_stock == 47.0
    assert not s.partial

def test_parallel_run_matches_sequential():
    uc, _, _ = forecast_uc(TWO_TANKS, FLAT, inventory={"GROWER1": 47})
    seq = run(uc)
    par = run(uc, max_workers=4)
    assert par.by_feed_type == seq.by_feed_type
    assert par.alerts == seq.alerts

def test_no_stockout_inside_horizon_uses_sentinel():
    uc, _, _ = forecast_uc(TWO_TANKS, FLAT, inventory={"GROWER1": 1000})
    (item,) = run(uc).by_feed_type
    assert item.days_until_stockout == 31
    assert item.stockout_date is None
    assert item.reorder_date is None
    assert not item.runs_out_in_horizon

def test_more_stock_never_means_earlier_stockout():
    days = []
    for stock in (0, 10, 47, 100, 154, 155, 1000):
        uc, _, _ = forecast_uc(TWO_TANKS, FLAT, inventory={"GROWER1": stock})
        days.append(run(uc).by_feed_type[0].days_until_stockout)
    assert days == sorted(days)

def test_feed_without_inventory_counts_as_zero_stock():
    uc, _, _ = forecast_uc(TWO_TANKS, FLAT, inventory={})
    s = run(uc)
    assert s.by_feed_type[0].current_stock == 0.0
    assert s.by_feed_type[0].days_until_stockout == 0

def test_tanks_without_feed_do_not_appear():
    uc, _, _ = forecast_uc([tank("T1", "B9")], {})
    s = run(uc)
    assert s.by_feed_type == []
    assert s.tanks_simulated == 1

def test_multiple_feeds_are_kept_apart():
    feeds = {"B1": ("GROWER1", 2.5), "B2": ("FINISH6", 4.0)}
    uc, _, _ = forecast_uc(TWO_TANKS, feeds, inventory={"GROWER1": 500, "FINISH6": 500})
    s = run(uc)
    assert {f.feed_code for f in s.by_feed_type} == {"GROWER1", "FINISH6"}
    assert s.total_consumption == pytest.approx(2.5 * 31 + 4.0 * 31)
    assert s.total_current_stock == 1000.0

# ---------- Alertas ----------

@pytest.mark.parametrize("stock,expected", [
    (12, ForecastAlertType.STOCKOUT_IMMINENT),   # acaba no dia 2
    (30, ForecastAlertType.REORDER_NOW),         # dia 5 <= lead time
    (47, ForecastAlertType.LOW_STOCK),           # dia 9 <= lead + segurança
    (100, None),                                 # dia 19
])
def test_alert_tiers(stock, expected):
    uc, _, _ = forecast_uc(TWO_TANKS, FLAT, inventory={"GROWER1": stock})
    s = run(uc)
    if expected is None:
        assert s.alerts == []
    else:
        (alert,) = s.alerts
        assert alert.type is expected
        assert alert.feed_code == "GROWER1"
        assert "GROWER1" in alert.message

def test_reorder_date_absent_when_stockout_within_lead_time():
    uc, _, _ = forecast_uc(TWO_TANKS, FLAT, inventory={"GROWER1": 30})
    item = run(uc).by_feed_type[0]
    assert item.days_until_stockout == 5
    assert item.stockout_date is not None
    assert item.reorder_date is None

def test_alerts_sorted_by_urgency():
    feeds = {"B1": ("GROWER1", 2.5), "B2": ("FINISH6", 2.5)}
    uc, _, _ = forecast_uc(TWO_TANKS, feeds, inventory={"GROWER1": 25, "FINISH6": 5})
    s = run(uc)
    assert [a.feed_code for a in s.alerts] == ["FINISH6", "GROWER1"]

# ---------- Falhas parciais ----------

def test_inventory_failure_suppresses_alerts():
    uc, _, _ = forecast_uc(TWO_TANKS, FLAT, broken=True)
    s = run(uc)
    assert s.alerts == []
    assert s.warnings and "estoque" in s.warnings[0]
    assert s.by_feed_type[0].current_stock == 0.0
    assert s.total_current_stock == 0.0

def test_failing_tank_is_skipped():
    tanks = [tank("T1", "B1"), tank("T2", "BAD")]
    uc, _, _ = forecast_uc(tanks, FLAT, inventory={"GROWER1": 500})
    for workers in (1, 4):
        s = run(uc, max_workers=workers)
        assert s.tanks_simulated == 1
        assert [k.tank_id for k in s.skipped_tanks] == ["T2"]
        assert "dados corrompidos" in s.skipped_tanks[0].reason
        assert s.by_feed_type[0].total_consumption == 2.5 * 31

def test_tank_without_weight_is_skipped():
    tanks = [tank("T1", "B1"), tank("T2", "B2", weight=0.0)]
    uc, _, sim = forecast_uc(tanks, FLAT, inventory={"GROWER1": 500})
    s = run(uc)
    assert [k.tank_id for k in s.skipped_tanks] == ["T2"]
    assert len(sim.inputs) == 1

def test_timeout_returns_partial_forecast():
    tanks = [tank("T1", "B1"), tank("T2", "SLOW")]
    uc, _, sim = forecast_uc(tanks, FLAT, inventory={"GROWER1": 500})
    try:
        s = run(uc, max_workers=2, timeout_seconds=0.2)
    finally:
        sim.release.set()
    assert s.partial
    assert [k.tank_id for k in s.skipped_tanks] == ["T2"]
    assert s.tanks_simulated == 1
    assert s.by_feed_type[0].contributing_tanks[0].tank_id == "T1"

# ---------- SGR em lote ----------

def test_sgr_resolved_once_before_simulations():
    tanks = [tank("T1", "B1", sgr=1.0), tank("T2", "B2", sgr=1.2), tank("T3", "B3")]
    uc, repo, sim = forecast_uc(tanks, FLAT, inventory={"GROWER1": 500}, batch_sgr={"B1": 2.0})
    run(uc, max_workers=4)
    assert repo.sgr_calls == 1
    assert repo.get_tank_calls == 0
    sgr = {i.batch_id: i.sgr_percent for i in sim.inputs}
    assert sgr == {"B1": 2.0, "B2": 1.2, "B3": 1.5}
    assert all(i.projection_days == 30 and i.start_date == START for i in sim.inputs)

def test_defaults_used_when_input_empty():
    uc, _, sim = forecast_uc([tank("T1", "B1")], FLAT, inventory={"GROWER1": 500})
    s = uc.execute()
    assert s.forecast_days == 30
    assert s.start_date == date.today()
    assert sim.inputs[0].projection_days == 30

# ---------- Snapshot por execução ----------

def test_each_forecast_rereads_tanks_and_stock():
    repo = FakeTankRepo(TWO_TANKS)
    catalog = FakeCatalog({"GROWER1": 47})
    uc = ForecastFeedConsumptionUseCase(repo, catalog, FlatGrowthSimulator(FLAT), SimulationDefaults())
    run(uc, max_workers=4)
    assert (repo.refreshes, catalog.refreshes) == (1, 1)
    catalog.inventory = {"GROWER1": 999999}
    assert run(uc).total_current_stock == 999999.0
    assert (repo.refreshes, catalog.refreshes) == (2, 2)

def test_mortality_override_is_validated():
    for rate in (-0.01, 1.0):
        with pytest.raises(ValueError):
            FeedForecastInput(mortality_rate=rate)
    assert FeedForecastInput(mortality_rate=0.0).mortality_rate == 0.0
