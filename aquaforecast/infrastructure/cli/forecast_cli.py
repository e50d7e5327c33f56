# CLI da previsão de consumo e da simulação de crescimento
# Execução:
#   python -m aquaforecast.infrastructure.cli.forecast_cli forecast --days 30 --lead-time 7
#   python -m aquaforecast.infrastructure.cli.forecast_cli simulate --tank T1 --tank T2 --days 60
#   python -m aquaforecast.infrastructure.cli.forecast_cli harvest --weight 12 --target 350 --sgr 1.8

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from typing import List, Optional

import pandas as pd

from config.snapshot import FARM_SNAPSHOT_PATH
from aquaforecast.domain.use_cases.forecast_feed_consumption_use_case import FeedForecastInput
from aquaforecast.domain.use_cases.simulate_growth_use_case import GrowthSimulationInput
from aquaforecast.infrastructure.bootstrap import build_use_cases
from aquaforecast.infrastructure.growth.sgr_model import estimate_sgr, project_harvest_date
from aquaforecast.infrastructure.reporting.frames import (
    alerts_to_frame, consumption_to_frame, multi_tank_frame, projections_to_frame, stock_table,
)


def _temperatures(raw: Optional[str]) -> Optional[List[float]]:
    """'14,14.5,15' → [14.0, 14.5, 15.0]"""
    if not raw:
        return None
    return [float(x) for x in raw.split(",") if x.strip()]


def _print_frame(title: str, df: pd.DataFrame) -> None:
    print(f"\n== {title} ==")
    print("(vazio)" if df.empty else df.to_string(index=False))


def cmd_forecast(args: argparse.Namespace) -> int:
    uc = build_use_cases(args.snapshot)
    summary = uc.forecast.execute(FeedForecastInput(
        forecast_days=args.days,
        lead_time_days=args.lead_time,
        safety_stock_days=args.safety_stock,
        mortality_rate=args.mortality,
        temperature_forecast=_temperatures(args.temperatures),
        timeout_seconds=args.timeout,
        max_workers=args.workers,
    ))
    print(f"Previsão {summary.start_date:%d/%m/%Y} → {summary.end_date:%d/%m/%Y} "
          f"• tanques={summary.tanks_simulated} • consumo={summary.total_consumption:.2f} kg "
          f"• estoque={summary.total_current_stock:.2f} kg")
    if summary.partial:
        print("ATENÇÃO: previsão parcial (tempo limite).")
    for w in summary.warnings:
        print(f"aviso: {w}")
    for s in summary.skipped_tanks:
        print(f"tanque ignorado: {s.tank_id} ({s.reason})")
    _print_frame("Estoque por ração", stock_table(summary))
    _print_frame("Alertas", alerts_to_frame(summary))
    if args.csv:
        consumption_to_frame(summary).to_csv(args.csv, index=False)
        print(f"\nconsumo diário salvo em: {args.csv}")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    uc = build_use_cases(args.snapshot)
    temps = _temperatures(args.temperatures)
    if args.tank:
        results = uc.growth.simulate_multi_tank(args.tank, args.days, args.mortality, temps)
        for r in results:
            s = r.summary
            print(f"{r.tank_code or r.tank_id}: {s.start_weight:.2f} g → {s.end_weight:.2f} g • "
                  f"ração={s.total_feed_kg:.2f} kg • FCR={s.avg_fcr:.2f} • SGR={r.sgr_percent:.2f}%")
        df = multi_tank_frame(results)
    else:
        temp = args.temp if args.temp is not None else 15.0
        sgr = args.sgr if args.sgr is not None else estimate_sgr(args.species, temp)
        result = uc.growth.execute(GrowthSimulationInput(
            current_weight_g=args.weight, current_count=args.count, sgr_percent=sgr,
            projection_days=args.days, batch_id=args.batch, mortality_rate=args.mortality,
            temperature_forecast=temps, target_weight_g=args.target,
        ))
        df = projections_to_frame(result)
        _print_frame("Projeção", df)
        if result.summary.harvest_date:
            print(f"\ndespesca prevista: {result.summary.harvest_date:%d/%m/%Y} "
                  f"({result.summary.days_to_harvest} dias)")
    if args.csv:
        df.to_csv(args.csv, index=False)
        print(f"projeção salva em: {args.csv}")
    return 0


def cmd_harvest(args: argparse.Namespace) -> int:
    sgr = args.sgr if args.sgr is not None else estimate_sgr(args.species, args.temp)
    hp = project_harvest_date(args.weight, args.target, sgr, date.today())
    print(f"SGR={sgr:.2f}%/dia • {hp.days_to_harvest} dias • despesca em {hp.harvest_date:%d/%m/%Y}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Crescimento e previsão de consumo de ração")
    ap.add_argument("--snapshot", default=str(FARM_SNAPSHOT_PATH), help="arquivo json da fazenda")
    ap.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING...")
    sub = ap.add_subparsers(dest="command", required=True)

    f = sub.add_parser("forecast", help="consumo por ração, ruptura e pedido")
    f.add_argument("--days", type=int, default=None)
    f.add_argument("--lead-time", type=int, default=None)
    f.add_argument("--safety-stock", type=int, default=None)
    f.add_argument("--mortality", type=float, default=None)
    f.add_argument("--temperatures", default=None, help="lista separada por vírgula, um valor por dia")
    f.add_argument("--timeout", type=float, default=None, help="segundos; estourou → previsão parcial")
    f.add_argument("--workers", type=int, default=None)
    f.add_argument("--csv", default=None)
    f.set_defaults(func=cmd_forecast)

    s = sub.add_parser("simulate", help="projeção de crescimento (tanques ou entrada manual)")
    s.add_argument("--tank", action="append", help="id do tanque (repita para comparar)")
    s.add_argument("--weight", type=float, default=10.0)
    s.add_argument("--count", type=int, default=1000)
    s.add_argument("--sgr", type=float, default=None)
    s.add_argument("--species", default="default")
    s.add_argument("--temp", type=float, default=None, help="temperatura para estimar o SGR")
    s.add_argument("--batch", default=None)
    s.add_argument("--target", type=float, default=None, help="peso alvo de despesca (g)")
    s.add_argument("--days", type=int, default=30)
    s.add_argument("--mortality", type=float, default=None)
    s.add_argument("--temperatures", default=None)
    s.add_argument("--csv", default=None)
    s.set_defaults(func=cmd_simulate)

    h = sub.add_parser("harvest", help="dias até o peso alvo")
    h.add_argument("--weight", type=float, required=True)
    h.add_argument("--target", type=float, required=True)
    h.add_argument("--sgr", type=float, default=None)
    h.add_argument("--species", default="default")
    h.add_argument("--temp", type=float, default=15.0)
    h.set_defaults(func=cmd_harvest)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
