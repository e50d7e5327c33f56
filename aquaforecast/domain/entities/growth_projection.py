from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from aquaforecast.domain.enums import FeedPath


@dataclass(frozen=True)
class GrowthProjection:
    """
    Linha diária da projeção de crescimento de um tanque.
    Valores de peso, biomassa e ração arredondados em 2 casas.
    """
    day: int
    date: date
    avg_weight_g: float
    fish_count: int
    biomass_kg: float
    sgr: float
    feeding_rate_percent: float
    daily_feed_kg: float
    cumulative_feed_kg: float
    temperature: float
    mortality: int
    cumulative_mortality: int
    feed_id: Optional[str] = None
    feed_code: Optional[str] = None
    feed_name: Optional[str] = None
    fcr: Optional[float] = None
    rate_source: FeedPath = FeedPath.DEFAULT_TABLE


@dataclass(frozen=True)
class GrowthSummary:
    """Resumo do período simulado."""
    start_weight: float
    end_weight: float
    start_biomass: float
    end_biomass: float
    total_feed_kg: float
    avg_fcr: float
    total_mortality: int
    harvest_date: Optional[date] = None
    harvest_weight: Optional[float] = None
    days_to_harvest: Optional[int] = None


@dataclass
class FeedRequirement:
    """Acumulador por ração: quanto e em quais dias ela foi usada."""
    feed_code: str
    feed_name: str
    total_kg: float
    days_used: int
    start_day: int
    end_day: int


@dataclass(frozen=True)
class GrowthSimulationResult:
    projections: List[GrowthProjection]
    summary: GrowthSummary
    feed_requirements: List[FeedRequirement] = field(default_factory=list)


@dataclass(frozen=True)
class TankSimulationResult:
    """Resultado por tanque no modo comparação (multi-tanque)."""
    tank_id: str
    simulation: GrowthSimulationResult
    tank_name: Optional[str] = None
    tank_code: Optional[str] = None
    batch_id: Optional[str] = None
    sgr_percent: float = 0.0

    @property
    def projections(self) -> Sequence[GrowthProjection]:
        return self.simulation.projections

    @property
    def summary(self) -> GrowthSummary:
        return self.simulation.summary
