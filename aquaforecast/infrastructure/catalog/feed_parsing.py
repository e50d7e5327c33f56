# aquaforecast/infrastructure/catalog/feed_parsing.py
"""
Conversão dos registros crus (JSON) em value objects tipados.

A origem guarda curva e matriz como JSON "solto": às vezes objeto, às vezes
texto, com chaves em camelCase ou snake_case. Toda essa tolerância fica AQUI,
na fronteira do repositório; o domínio só enxerga tipos validados.

- `parse_feed`         caminho tipado (levanta ValueError se o registro é inválido)
- `parse_feed_lenient` caminho degradado: só id/código/nome, sem curva/matriz
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
import json
import logging
import math

from aquaforecast.domain.entities.feed import Feed
from aquaforecast.domain.value_objects import (
    FeedAssignmentEntry, FeedingCurve, FeedingCurvePoint, FeedingMatrix2D, TankSnapshot,
)
from aquaforecast.infrastructure.feeding.feeding_matrix import validate_matrix

log = logging.getLogger("aquaforecast.infra.parsing")


# ============================
# Helpers
# ============================
def pick(record: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Primeiro valor não-None entre as chaves (aceita camelCase e snake_case)."""
    for k in keys:
        v = record.get(k)
        if v is not None:
            return v
    return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Número ou texto numérico → float; inválido/NaN → default."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(v) else v


def _load_json(raw: Any) -> Any:
    """Aceita objeto já decodificado ou texto JSON."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        raw = raw.strip()
        return json.loads(raw) if raw else None
    return raw


# ============================
# Curva / matriz
# ============================
def parse_feeding_curve(raw: Any) -> Optional[FeedingCurve]:
    """
    Curva 1-D a partir de lista de pontos (ou texto JSON).
    Pontos inválidos são descartados com aviso; curva vazia → None.
    """
    try:
        data = _load_json(raw)
    except ValueError as e:
        log.warning("curve_unparseable err=%s", e)
        return None
    if not data:
        return None
    if not isinstance(data, list):
        log.warning("curve_unparseable err=not_a_list type=%s", type(data).__name__)
        return None

    points: List[FeedingCurvePoint] = []
    for i, p in enumerate(data):
        try:
            fcr = pick(p, "fcr")
            points.append(FeedingCurvePoint(
                fish_weight_g=float(pick(p, "fishWeightG", "fish_weight_g")),
                feeding_rate_percent=float(pick(p, "feedingRatePercent", "feeding_rate_percent")),
                fcr=float(fcr) if fcr is not None else None,
            ))
        except (TypeError, ValueError, AttributeError) as e:
            log.warning("curve_point_skipped index=%s err=%s", i, e)
    return FeedingCurve.of(points) if points else None


def parse_feeding_matrix(raw: Any) -> Optional[FeedingMatrix2D]:
    """
    Matriz 2-D a partir de objeto (ou texto JSON).

    Matriz ilegível → None (o seletor cai para a curva 1-D). Matriz legível
    mas estruturalmente inconsistente é mantida: as violações vão para o log
    e a interpolação degrada para os valores padrão.
    """
    try:
        data = _load_json(raw)
        if not data:
            return None
        matrix = FeedingMatrix2D.of(
            temperatures=data["temperatures"],
            weights=data["weights"],
            rates=data["rates"],
            fcr_matrix=pick(data, "fcrMatrix", "fcr_matrix"),
        )
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        log.warning("matrix_unparseable err=%s", e)
        return None

    problems = validate_matrix(matrix)
    if problems:
        log.warning("matrix_invalid problems=%s", "; ".join(problems))
    return matrix


# ============================
# Ração
# ============================
def parse_feed(record: Dict[str, Any]) -> Feed:
    """Caminho tipado. Levanta ValueError para registro sem id/código."""
    feed_id = pick(record, "id", "feedId", "feed_id")
    code = pick(record, "code")
    if feed_id is None or code is None:
        raise ValueError(f"Registro de ração incompleto: {record!r}")
    return Feed(
        id=str(feed_id),
        code=str(code),
        name=str(pick(record, "name", default=code)),
        feeding_curve=parse_feeding_curve(pick(record, "feedingCurve", "feeding_curve")),
        feeding_matrix=parse_feeding_matrix(pick(record, "feedingMatrix2D", "feedingMatrix", "feeding_matrix")),
    )


def parse_feed_lenient(record: Dict[str, Any]) -> Optional[Feed]:
    """Caminho degradado: mantém identidade da ração, descarta curva/matriz."""
    try:
        code = pick(record, "code")
        feed_id = pick(record, "id", "feedId", "feed_id", default=code)
        if code is None:
            return None
        return Feed(id=str(feed_id), code=str(code), name=str(pick(record, "name", default=code)))
    except (TypeError, ValueError, AttributeError):
        return None


# ============================
# Atribuições / tanques
# ============================
def parse_assignment(record: Dict[str, Any]) -> FeedAssignmentEntry:
    return FeedAssignmentEntry(
        feed_id=str(pick(record, "feedId", "feed_id")),
        min_weight_g=float(pick(record, "minWeightG", "min_weight_g", default=0.0)),
        max_weight_g=float(pick(record, "maxWeightG", "max_weight_g", default=float("inf"))),
        priority=int(pick(record, "priority", default=0)),
        active=bool(pick(record, "active", "isActive", default=True)),
    )


def parse_tank(record: Dict[str, Any]) -> TankSnapshot:
    sgr = pick(record, "sgrPercent", "sgr_percent", "sgr")
    batch_id = pick(record, "batchId", "primaryBatchId", "batch_id")
    return TankSnapshot(
        tank_id=str(pick(record, "tankId", "tank_id", "id")),
        current_weight_g=to_float(pick(record, "avgWeightG", "currentWeightG", "current_weight_g")),
        current_count=int(to_float(pick(record, "totalQuantity", "currentCount", "current_count"))),
        sgr_percent=to_float(sgr) if sgr is not None else None,
        batch_id=str(batch_id) if batch_id is not None else None,
        tank_name=pick(record, "tankName", "name"),
        tank_code=pick(record, "tankCode", "code"),
    )
