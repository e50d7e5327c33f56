# aquaforecast/infrastructure/feeding/feeding_matrix.py
"""
Interpolação bilinear da matriz de alimentação (temperatura x peso).

Regras por eixo (índices de contorno):
    - valor <= primeiro ponto  → (0, 0)            (clamp inferior)
    - valor >= último ponto    → (último, último)  (clamp superior)
    - senão o único i com axis[i] <= valor < axis[i+1]

Células ausentes ou NaN assumem 3.0 (taxa) / 1.0 (FCR), de modo que uma matriz
malformada degrada o resultado em vez de quebrar a simulação. `interpolate`
sempre devolve um número; a consistência estrutural é responsabilidade de
`validate_matrix`, que apenas lista violações.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import math

import numpy as np

from aquaforecast.domain.value_objects import FeedingMatrix2D, SimulationDefaults


# ============================
# Resultado
# ============================
@dataclass(frozen=True)
class InterpolationResult:
    """
    Attributes:
        feeding_rate_percent: Taxa interpolada (%BW), 2 casas.
        fcr: FCR interpolado (2 casas) ou None se a matriz não tem FCR.
        bounding_box: (t_baixo, t_alto, w_baixo, w_alto) usados no cálculo.
    """
    feeding_rate_percent: float
    fcr: Optional[float]
    bounding_box: Tuple[float, float, float, float]


# ============================
# Helpers
# ============================
def round2(x: float) -> float:
    """Arredonda em 2 casas (meio para cima, como na planilha de origem)."""
    return math.floor(float(x) * 100.0 + 0.5) / 100.0


def _bounds(axis: Sequence[float], value: float) -> Tuple[int, int]:
    """Índices (baixo, alto) que cercam `value` no eixo (ver regras do módulo)."""
    last = len(axis) - 1
    if not math.isfinite(value) or value <= axis[0]:
        return 0, 0
    if value >= axis[last]:
        return last, last
    i = int(np.searchsorted(np.asarray(axis, dtype=float), value, side="right")) - 1
    # eixo fora de ordem pode empurrar o índice para fora da faixa útil
    i = max(0, min(last - 1, i))
    return i, i + 1


def _cell(values, ti: int, wi: int, default: float) -> float:
    """Valor da célula [ti][wi]; ausente, não numérico ou NaN → default."""
    try:
        v = float(values[ti][wi])
    except (IndexError, TypeError, ValueError):
        return float(default)
    return float(default) if math.isnan(v) else v


def _bilinear(values, ti: Tuple[int, int], wi: Tuple[int, int],
              t: Tuple[float, float, float], w: Tuple[float, float, float],
              default: float) -> float:
    """
    Fórmula bilinear com ramos degenerados explícitos:
    - cantos idênticos (span zero nos dois eixos) → valor do canto
    - span zero em um eixo → interpolação linear no outro
    """
    t1, t2, temp = t
    w1, w2, weight = w
    f11 = _cell(values, ti[0], wi[0], default)
    f12 = _cell(values, ti[0], wi[1], default)
    f21 = _cell(values, ti[1], wi[0], default)
    f22 = _cell(values, ti[1], wi[1], default)

    if t1 == t2 and w1 == w2:
        return f11
    if t1 == t2:
        return f11 + (f12 - f11) * (weight - w1) / (w2 - w1)
    if w1 == w2:
        return f11 + (f21 - f11) * (temp - t1) / (t2 - t1)

    denom = (t2 - t1) * (w2 - w1)
    return (
        f11 * (t2 - temp) * (w2 - weight)
        + f21 * (temp - t1) * (w2 - weight)
        + f12 * (t2 - temp) * (weight - w1)
        + f22 * (temp - t1) * (weight - w1)
    ) / denom


# ============================
# API
# ============================
def interpolate(matrix: FeedingMatrix2D, temperature: float, weight_g: float,
                defaults: Optional[SimulationDefaults] = None) -> InterpolationResult:
    """
    Taxa de alimentação (e FCR, se houver) para (temperatura, peso).

    Args:
        matrix: Matriz 2-D (não precisa estar válida).
        temperature: Temperatura da água (°C).
        weight_g: Peso médio do peixe (g).
        defaults: Padrões para células ausentes (3.0 / 1.0).

    Returns:
        InterpolationResult com valores arredondados em 2 casas.
    """
    d = defaults or SimulationDefaults()
    temps = matrix.temperatures
    weights = matrix.weights

    if not temps or not weights:
        # matriz sem eixo: nada a interpolar, devolve os padrões
        return InterpolationResult(
            feeding_rate_percent=round2(d.feeding_rate_percent),
            fcr=round2(d.fcr) if matrix.fcr_matrix is not None else None,
            bounding_box=(temperature, temperature, weight_g, weight_g),
        )

    ti = _bounds(temps, temperature)
    wi = _bounds(weights, weight_g)
    t = (temps[ti[0]], temps[ti[1]], temperature)
    w = (weights[wi[0]], weights[wi[1]], weight_g)

    rate = _bilinear(matrix.rates, ti, wi, t, w, d.feeding_rate_percent)
    fcr = None
    if matrix.fcr_matrix is not None:
        fcr = round2(_bilinear(matrix.fcr_matrix, ti, wi, t, w, d.fcr))

    return InterpolationResult(
        feeding_rate_percent=round2(rate),
        fcr=fcr,
        bounding_box=(t[0], t[1], w[0], w[1]),
    )


def _check_axis(name: str, axis: Sequence[float]) -> List[str]:
    if not axis:
        return [f"eixo '{name}' vazio"]
    arr = np.asarray(axis, dtype=float)
    if np.isnan(arr).any():
        return [f"eixo '{name}' contém valores inválidos"]
    if len(arr) > 1 and not bool(np.all(np.diff(arr) > 0)):
        return [f"eixo '{name}' deve ser estritamente crescente"]
    return []


def _check_grid(name: str, grid, n_rows: int, n_cols: int) -> List[str]:
    problems: List[str] = []
    if len(grid) != n_rows:
        problems.append(f"'{name}' tem {len(grid)} linhas; esperado {n_rows} (uma por temperatura)")
    for i, row in enumerate(grid):
        if len(row) != n_cols:
            problems.append(f"'{name}[{i}]' tem {len(row)} colunas; esperado {n_cols} (uma por peso)")
            continue
        for j, cell in enumerate(row):
            try:
                bad = math.isnan(float(cell))
            except (TypeError, ValueError):
                bad = True
            if bad:
                problems.append(f"'{name}[{i}][{j}]' não é numérico")
    return problems


def validate_matrix(matrix: Optional[FeedingMatrix2D]) -> List[str]:
    """
    Verificações estruturais da matriz. Nunca levanta exceção.

    Returns:
        Lista de violações (vazia = matriz válida).
    """
    if matrix is None:
        return ["matriz ausente"]
    try:
        problems = _check_axis("temperatures", matrix.temperatures)
        problems += _check_axis("weights", matrix.weights)
        n_t, n_w = len(matrix.temperatures), len(matrix.weights)
        problems += _check_grid("rates", matrix.rates, n_t, n_w)
        if matrix.fcr_matrix is not None:
            problems += _check_grid("fcr_matrix", matrix.fcr_matrix, n_t, n_w)
        return problems
    except (TypeError, ValueError) as e:
        return [f"matriz ilegível: {e}"]
