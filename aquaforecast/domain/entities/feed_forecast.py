"""
Resultado da previsão de consumo de ração por tipo.

Estruturas transitórias: calculadas sob demanda e entregues sem alteração à
camada de apresentação (dashboard/CLI). Nada aqui é persistido.

Convenções
----------
- `days_until_stockout == forecast_days + 1` significa "não acaba dentro do
  horizonte" e vem acompanhado de `stockout_date=None`.
- `reorder_date=None` com ruptura prevista significa que o pedido já está
  atrasado (ruptura dentro do lead time).
- `partial=True` indica que parte dos tanques não terminou a simulação dentro
  do tempo limite; esses tanques aparecem em `skipped_tanks`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from aquaforecast.domain.enums import ForecastAlertType


@dataclass(frozen=True)
class ContributingTank:
    """Participação de um tanque no consumo de uma ração (rastreabilidade)."""
    tank_id: str
    tank_label: str
    consumption_kg: float


@dataclass(frozen=True)
class FeedConsumptionByType:
    feed_id: str
    feed_code: str
    feed_name: str
    daily_consumption: List[float]
    total_consumption: float
    current_stock: float
    days_until_stockout: int
    stockout_date: Optional[date]
    reorder_date: Optional[date]
    reorder_quantity: int
    contributing_tanks: List[ContributingTank] = field(default_factory=list)

    @property
    def runs_out_in_horizon(self) -> bool:
        return self.stockout_date is not None


@dataclass(frozen=True)
class ForecastAlert:
    feed_id: str
    feed_code: str
    type: ForecastAlertType
    message: str
    days_until_stockout: int


@dataclass(frozen=True)
class SkippedTank:
    tank_id: str
    reason: str


@dataclass(frozen=True)
class FeedForecastSummary:
    forecast_days: int
    start_date: date
    end_date: date
    by_feed_type: List[FeedConsumptionByType]
    alerts: List[ForecastAlert]
    total_consumption: float
    total_current_stock: float
    tanks_simulated: int = 0
    partial: bool = False
    skipped_tanks: List[SkippedTank] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReorderSuggestion:
    reorder_date: date
    days_until_reorder: int
