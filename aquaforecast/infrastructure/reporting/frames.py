# aquaforecast/infrastructure/reporting/frames.py
"""
Saídas dos casos de uso em DataFrames (dashboard e exportação CSV).
Somente formatação: nenhum cálculo de negócio acontece aqui.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Iterable, List

import pandas as pd

from aquaforecast.domain.entities.feed_forecast import FeedForecastSummary
from aquaforecast.domain.entities.growth_projection import GrowthSimulationResult, TankSimulationResult

PROJECTION_COLUMNS: List[str] = [
    "day", "date", "avg_weight_g", "fish_count", "biomass_kg", "sgr", "feed_code",
    "feeding_rate_percent", "daily_feed_kg", "cumulative_feed_kg", "fcr",
    "temperature", "mortality", "cumulative_mortality", "rate_source",
]


def projections_to_frame(result: GrowthSimulationResult | TankSimulationResult) -> pd.DataFrame:
    """Uma linha por dia simulado; `rate_source` exportado como nome do enum."""
    rows = []
    for p in result.projections:
        row = asdict(p)
        row["rate_source"] = p.rate_source.name
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=PROJECTION_COLUMNS)
    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"])
    return df[PROJECTION_COLUMNS]


def multi_tank_frame(results: Iterable[TankSimulationResult]) -> pd.DataFrame:
    """Projeções de vários tanques empilhadas, com a coluna `tank_id`."""
    frames = []
    for r in results:
        df = projections_to_frame(r)
        df.insert(0, "tank_id", r.tank_id)
        frames.append(df)
    if not frames:
        return pd.DataFrame(columns=["tank_id", *PROJECTION_COLUMNS])
    return pd.concat(frames, ignore_index=True)


def consumption_to_frame(summary: FeedForecastSummary) -> pd.DataFrame:
    """
    Formato longo: uma linha por (ração, dia) com consumo diário e acumulado.
    """
    rows = []
    for f in summary.by_feed_type:
        for day, kg in enumerate(f.daily_consumption):
            rows.append({"feed_code": f.feed_code, "feed_name": f.feed_name, "day": day, "consumption_kg": kg})
    df = pd.DataFrame(rows, columns=["feed_code", "feed_name", "day", "consumption_kg"])
    if df.empty:
        df["cumulative_kg"] = pd.Series(dtype=float)
        df["date"] = pd.Series(dtype="datetime64[ns]")
        return df
    df["cumulative_kg"] = df.groupby("feed_code")["consumption_kg"].cumsum()
    df["date"] = pd.to_datetime(summary.start_date) + pd.to_timedelta(df["day"], unit="D")
    return df


def stock_table(summary: FeedForecastSummary) -> pd.DataFrame:
    """Resumo por ração: estoque, ruptura, pedido."""
    cols = ["feed_code", "feed_name", "current_stock", "total_consumption", "days_until_stockout",
            "stockout_date", "reorder_date", "reorder_quantity", "tanks"]
    rows = [{
        "feed_code": f.feed_code,
        "feed_name": f.feed_name,
        "current_stock": f.current_stock,
        "total_consumption": f.total_consumption,
        "days_until_stockout": f.days_until_stockout,
        "stockout_date": f.stockout_date,
        "reorder_date": f.reorder_date,
        "reorder_quantity": f.reorder_quantity,
        "tanks": ", ".join(t.tank_label for t in f.contributing_tanks),
    } for f in summary.by_feed_type]
    return pd.DataFrame(rows, columns=cols)


def alerts_to_frame(summary: FeedForecastSummary) -> pd.DataFrame:
    rows = [{
        "feed_code": a.feed_code,
        "type": a.type.name,
        "days_until_stockout": a.days_until_stockout,
        "message": a.message,
    } for a in summary.alerts]
    return pd.DataFrame(rows, columns=["feed_code", "type", "days_until_stockout", "message"])
