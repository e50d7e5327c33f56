"""
Value Objects do motor de crescimento e consumo de ração.

Todos são imutáveis (`frozen=True`) e construídos uma única vez na fronteira
do repositório. Regras:

- Escalares impossíveis (peso negativo, contagem negativa, faixa vazia)
  levantam `ValueError` no `__post_init__`.
- Problemas ESTRUTURAIS da matriz 2-D (eixos fora de ordem, dimensões
  divergentes) NÃO levantam: são reportados por `validate_matrix` e a
  interpolação devolve um valor aproximado mesmo assim.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from config.settings import SIMULATION_DEFAULTS, FORECAST_DEFAULTS


def check_mortality_rate(rate: float) -> None:
    """Mortalidade diária em [0, 1); fora disso a população cresceria ou zeraria."""
    if not (0.0 <= rate < 1.0):
        raise ValueError("Taxa de mortalidade deve estar em [0, 1).")


@dataclass(frozen=True)
class FeedingCurvePoint:
    """
    Amostra da curva de alimentação 1-D (função degrau por peso).

    Attributes:
        fish_weight_g: Peso limite inferior (g) a partir do qual a taxa vale.
        feeding_rate_percent: Taxa diária em %BW.
        fcr: Conversão alimentar esperada nessa faixa (None = desconhecida).
    """
    fish_weight_g: float
    feeding_rate_percent: float
    fcr: Optional[float] = None

    def __post_init__(self):
        if self.fish_weight_g < 0:
            raise ValueError("Peso da curva não pode ser negativo.")
        if self.feeding_rate_percent < 0:
            raise ValueError("Taxa de alimentação não pode ser negativa.")


@dataclass(frozen=True)
class FeedingCurve:
    """Curva de alimentação imutável (ordem de entrada preservada)."""
    points: Tuple[FeedingCurvePoint, ...] = ()

    @staticmethod
    def of(points: Sequence[FeedingCurvePoint]) -> "FeedingCurve":
        return FeedingCurve(points=tuple(points))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)


@dataclass(frozen=True)
class FeedingMatrix2D:
    """
    Matriz de alimentação temperatura x peso.

    Attributes:
        temperatures: Eixo de temperatura (°C), esperado estritamente crescente.
        weights: Eixo de peso (g), esperado estritamente crescente.
        rates: rates[t][w] em %BW; uma linha por temperatura.
        fcr_matrix: fcr[t][w] opcional, mesmo formato de `rates`.

    Observação:
        O construtor só normaliza para tuplas; a consistência estrutural é
        verificada por `validate_matrix` (infrastructure/feeding).
    """
    temperatures: Tuple[float, ...]
    weights: Tuple[float, ...]
    rates: Tuple[Tuple[float, ...], ...]
    fcr_matrix: Optional[Tuple[Tuple[float, ...], ...]] = None

    @staticmethod
    def of(temperatures, weights, rates, fcr_matrix=None) -> "FeedingMatrix2D":
        """Cria a matriz a partir de listas (JSON) convertendo para tuplas."""
        return FeedingMatrix2D(
            temperatures=tuple(float(t) for t in temperatures),
            weights=tuple(float(w) for w in weights),
            rates=tuple(tuple(row) for row in rates),
            fcr_matrix=tuple(tuple(row) for row in fcr_matrix) if fcr_matrix is not None else None,
        )


@dataclass(frozen=True)
class FeedAssignmentEntry:
    """
    Faixa de peso [min, max) em que uma ração é atribuída ao lote.
    Menor `priority` vence; empate resolvido pelo menor `min_weight_g`.
    """
    feed_id: str
    min_weight_g: float
    max_weight_g: float
    priority: int = 0
    active: bool = True

    def __post_init__(self):
        if not str(self.feed_id).strip():
            raise ValueError("Atribuição sem ração (feed_id vazio).")
        if self.min_weight_g >= self.max_weight_g:
            raise ValueError(
                f"Faixa de peso inválida: [{self.min_weight_g}, {self.max_weight_g})."
            )

    def contains(self, weight_g: float) -> bool:
        return self.min_weight_g <= weight_g < self.max_weight_g


@dataclass(frozen=True)
class TankSnapshot:
    """
    Semente da simulação: estado atual de um tanque com peixes.
    - `sgr_percent` e `batch_id` podem faltar (dados operacionais incompletos).
    """
    tank_id: str
    current_weight_g: float
    current_count: int
    sgr_percent: Optional[float] = None
    batch_id: Optional[str] = None
    tank_name: Optional[str] = None
    tank_code: Optional[str] = None

    def __post_init__(self):
        if not str(self.tank_id).strip():
            raise ValueError("Identificador do tanque não pode estar vazio.")
        if self.current_count < 0:
            raise ValueError("Quantidade de peixes não pode ser negativa.")
        if self.current_weight_g < 0:
            raise ValueError("Peso médio não pode ser negativo.")

    @property
    def biomass_kg(self) -> float:
        """Biomassa em kg (peso médio g × quantidade / 1000)."""
        return self.current_weight_g * self.current_count / 1000.0

    @property
    def is_live(self) -> bool:
        return self.current_count > 0

    @property
    def label(self) -> str:
        """Rótulo amigável para rastreabilidade (código > nome > id)."""
        return self.tank_code or self.tank_name or self.tank_id


@dataclass(frozen=True)
class SimulationDefaults:
    """
    Padrões injetáveis da simulação/previsão (lidos de config.settings).
    Um único objeto substitui os "números mágicos" 3.0 / 1.0 / 15 °C.
    """
    feeding_rate_percent: float = SIMULATION_DEFAULTS["feeding_rate_percent"]
    fcr: float = SIMULATION_DEFAULTS["fcr"]
    temperature_c: float = SIMULATION_DEFAULTS["temperature_c"]
    sgr_percent: float = SIMULATION_DEFAULTS["sgr_percent"]
    mortality_rate: float = SIMULATION_DEFAULTS["mortality_rate"]

    forecast_days: int = FORECAST_DEFAULTS["forecast_days"]
    lead_time_days: int = FORECAST_DEFAULTS["lead_time_days"]
    safety_stock_days: int = FORECAST_DEFAULTS["safety_stock_days"]
    reorder_window_days: int = FORECAST_DEFAULTS["reorder_window_days"]
    stockout_imminent_days: int = FORECAST_DEFAULTS["stockout_imminent_days"]
    max_workers: int = FORECAST_DEFAULTS["max_workers"]

    def __post_init__(self):
        check_mortality_rate(self.mortality_rate)
        if self.forecast_days <= 0:
            raise ValueError("Horizonte de previsão deve ser > 0 dias.")
