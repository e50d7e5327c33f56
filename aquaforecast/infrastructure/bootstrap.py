# monta os casos de uso sobre o snapshot json (usado pela CLI e pelo dashboard)
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config.snapshot import FARM_SNAPSHOT_PATH
from aquaforecast.domain.use_cases.forecast_feed_consumption_use_case import ForecastFeedConsumptionUseCase
from aquaforecast.domain.use_cases.select_feed_use_case import SelectFeedUseCase
from aquaforecast.domain.use_cases.simulate_growth_use_case import SimulateGrowthUseCase
from aquaforecast.domain.value_objects import SimulationDefaults
from aquaforecast.infrastructure.catalog.json_snapshot_repository import (
    FeedCatalogRepository, JsonBatchAssignmentRepository, JsonFarmSnapshot, JsonTankStateRepository,
)


@dataclass(frozen=True)
class UseCases:
    feed_selector: SelectFeedUseCase
    growth: SimulateGrowthUseCase
    forecast: ForecastFeedConsumptionUseCase


def build_use_cases(path: Path | str = FARM_SNAPSHOT_PATH,
                    defaults: Optional[SimulationDefaults] = None,
                    snapshot: Optional[JsonFarmSnapshot] = None) -> UseCases:
    snapshot = snapshot or JsonFarmSnapshot(path)
    defaults = defaults or SimulationDefaults()
    catalog = FeedCatalogRepository(snapshot)
    tanks = JsonTankStateRepository(snapshot)
    selector = SelectFeedUseCase(catalog, JsonBatchAssignmentRepository(snapshot), defaults)
    growth = SimulateGrowthUseCase(selector, tanks, defaults)
    return UseCases(
        feed_selector=selector,
        growth=growth,
        forecast=ForecastFeedConsumptionUseCase(tanks, catalog, growth, defaults),
    )
