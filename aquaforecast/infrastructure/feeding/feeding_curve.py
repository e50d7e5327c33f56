# aquaforecast/infrastructure/feeding/feeding_curve.py
from __future__ import annotations

from typing import Iterable, Optional

from config.settings import SIMULATION_DEFAULTS
from aquaforecast.domain.value_objects import FeedingCurvePoint


def resolve_point(curve: Optional[Iterable[FeedingCurvePoint]],
                  weight_g: float) -> Optional[FeedingCurvePoint]:
    """
    Ponto da curva que vale para o peso informado.

    A curva é uma tabela degrau: ordena por peso decrescente e devolve o
    primeiro ponto com `fish_weight_g <= weight_g` (limiar inferior mais
    próximo). Peso abaixo do menor limiar → None.
    """
    if not curve:
        return None
    for point in sorted(curve, key=lambda p: p.fish_weight_g, reverse=True):
        if point.fish_weight_g <= weight_g:
            return point
    return None


def resolve_rate(curve: Optional[Iterable[FeedingCurvePoint]],
                 weight_g: float,
                 default: float = SIMULATION_DEFAULTS["feeding_rate_percent"]) -> float:
    """Taxa (%BW) da curva; sem curva ou sem ponto aplicável → `default`."""
    point = resolve_point(curve, weight_g)
    return point.feeding_rate_percent if point is not None else float(default)


def resolve_fcr(curve: Optional[Iterable[FeedingCurvePoint]], weight_g: float) -> Optional[float]:
    """FCR da curva pela mesma regra; None = desconhecido."""
    point = resolve_point(curve, weight_g)
    return point.fcr if point is not None else None
