# aquaforecast/infrastructure/growth/sgr_model.py
"""
Modelo exponencial de crescimento por SGR (Specific Growth Rate).

Fórmulas:
    Wt  = W0 × e^(SGR × t / 100)           peso no dia t
    SGR = (ln(Wt) − ln(W0)) / t × 100      %/dia
    t   = ln(Wt / W0) / (SGR / 100)        dias até o peso alvo

Entradas degeneradas (dias <= 0, pesos <= 0, SGR <= 0) devolvem saídas
neutras (0 % ou 0 dias): refletem dados operacionais incompletos, não erro
de programação.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional
import math

from config.settings import SPECIES_BASE_SGR


@dataclass(frozen=True)
class HarvestProjection:
    harvest_date: date
    days_to_harvest: int


def calculate_sgr(start_weight_g: float, end_weight_g: float, days: float) -> float:
    """SGR (%/dia) entre duas pesagens; entradas inválidas → 0."""
    if days <= 0 or start_weight_g <= 0 or end_weight_g <= 0:
        return 0.0
    return (math.log(end_weight_g) - math.log(start_weight_g)) / days * 100.0


def _temperature_factor(temperature: float) -> float:
    """
    Multiplicador térmico (faixa ótima assumida 15–22 °C).
    Pontos fixos; o mais extremo vence (<10 antes de <15, >25 antes de >22).
    """
    if temperature < 10:
        return 0.5
    if temperature < 15:
        return 0.75
    if temperature > 25:
        return 0.8
    if temperature > 22:
        return 0.9
    return 1.0


def estimate_sgr(species: Optional[str], temperature: float) -> float:
    """
    Estimativa simplificada de SGR por espécie e temperatura.
    Espécie desconhecida usa a taxa 'default'. Resultado em 2 casas.
    """
    key = (species or "").strip().lower()
    base = SPECIES_BASE_SGR.get(key, SPECIES_BASE_SGR["default"])
    return round(base * _temperature_factor(temperature), 2)


def grow(weight_g: float, sgr_percent: float, days: float = 1.0) -> float:
    """Peso após `days` dias com SGR composto diariamente."""
    return weight_g * math.exp(sgr_percent / 100.0 * days)


def project_harvest_date(current_weight_g: float, target_weight_g: float, sgr_percent: float,
                         start_date: Optional[date] = None) -> HarvestProjection:
    """
    Data de despesca pela inversão fechada da fórmula de crescimento.

    Arredonda os dias para cima: aplicar `days_to_harvest` em `grow` nunca
    fica abaixo do alvo. SGR <= 0, peso inválido ou já no alvo → 0 dias.
    """
    start = start_date or date.today()
    if sgr_percent <= 0 or current_weight_g <= 0 or current_weight_g >= target_weight_g:
        return HarvestProjection(harvest_date=start, days_to_harvest=0)
    days = math.ceil(math.log(target_weight_g / current_weight_g) / (sgr_percent / 100.0))
    return HarvestProjection(harvest_date=start + timedelta(days=days), days_to_harvest=int(days))


def default_feeding_rate(weight_g: float) -> float:
    """
    Taxa padrão (%BW) por faixa de peso quando não há ração/curva.
    Peixe menor come proporcionalmente mais.
    """
    if weight_g < 5:      return 8.0   # alevino
    elif weight_g < 20:   return 5.0   # juvenil
    elif weight_g < 50:   return 4.0
    elif weight_g < 100:  return 3.0
    elif weight_g < 200:  return 2.5
    elif weight_g < 500:  return 2.0
    elif weight_g < 1000: return 1.5
    else:                 return 1.2   # tamanho comercial
