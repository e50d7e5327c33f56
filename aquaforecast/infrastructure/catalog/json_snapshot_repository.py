# implementação concreta (somente leitura) dos repositórios
# lê um snapshot json da fazenda: rações, estoque, atribuições, lotes e tanques

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import json
import logging

from config.snapshot import FARM_SNAPSHOT_PATH
from aquaforecast.domain.entities.feed import Feed
from aquaforecast.domain.repositories.feed_catalog_repository import IRawFeedSource
from aquaforecast.domain.value_objects import FeedAssignmentEntry, TankSnapshot
from aquaforecast.infrastructure.catalog.feed_parsing import (
    parse_assignment, parse_feed, parse_feed_lenient, parse_tank, pick, to_float,
)

log = logging.getLogger("aquaforecast.infra.snapshot")


class JsonFarmSnapshot:
    """
    Camada crua: o documento json como veio da origem.

    O arquivo é lido na primeira consulta e mantido até `refresh()`. Os casos
    de uso chamam `refresh()` no início de cada execução: uma previsão inteira
    enxerga o mesmo snapshot e mudanças de estoque no meio do cálculo ficam
    para a próxima execução.
    """

    def __init__(self, path: Path | str = FARM_SNAPSHOT_PATH, document: Optional[Dict[str, Any]] = None):
        self.path = Path(path)
        # documento em memória não tem origem para reler
        self._fixed = document
        self._doc = document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "JsonFarmSnapshot":
        return cls(path="<memória>", document=document)

    @property
    def document(self) -> Dict[str, Any]:
        if self._doc is None:
            with self.path.open("r", encoding="utf-8") as fh:
                self._doc = json.load(fh)
            log.info("snapshot_loaded path=%s feeds=%s tanks=%s", self.path,
                     len(self._doc.get("feeds", [])), len(self._doc.get("tanks", [])))
        return self._doc

    def refresh(self) -> None:
        self._doc = self._fixed

    # ---- rações ----
    def get_feed_record(self, feed_id: str) -> Optional[Dict[str, Any]]:
        for rec in self.document.get("feeds", []):
            if str(pick(rec, "id", "feedId", "feed_id", default="")) == str(feed_id):
                return rec
        return None

    def get_inventory_records(self) -> Iterable[Dict[str, Any]]:
        """Seção 'inventory'; sem ela, usa a quantidade gravada em cada ração."""
        if "inventory" in self.document:
            return list(self.document["inventory"])
        return [{"code": pick(f, "code"), "quantity_kg": pick(f, "quantity", "quantityKg", default=0)}
                for f in self.document.get("feeds", []) if pick(f, "code")]

    # ---- lotes / tanques ----
    def list_assignment_records(self, batch_id: str) -> List[Dict[str, Any]]:
        return [a for a in self.document.get("assignments", [])
                if str(pick(a, "batchId", "batch_id", default="")) == str(batch_id)]

    def list_tank_records(self) -> List[Dict[str, Any]]:
        return list(self.document.get("tanks", []))

    def list_batch_records(self) -> List[Dict[str, Any]]:
        return list(self.document.get("batches", []))


class FeedCatalogRepository:
    """
    Camada tipada do catálogo sobre uma fonte crua (IRawFeedSource).

    - Converte cada ração uma única vez por execução e guarda em cache
      (`refresh()` limpa o cache e a fonte crua).
    - Registro que não passa no caminho tipado cai no caminho degradado
      (identidade da ração sem curva/matriz) em vez de sumir.
    """

    def __init__(self, raw: IRawFeedSource):
        self.raw = raw
        self._cache: Dict[str, Optional[Feed]] = {}

    def refresh(self) -> None:
        self._cache = {}
        self.raw.refresh()

    def get_feed_by_id(self, feed_id: str) -> Optional[Feed]:
        if feed_id in self._cache:
            return self._cache[feed_id]
        record = self.raw.get_feed_record(feed_id)
        if record is None:
            feed = None
        else:
            try:
                feed = parse_feed(record)
            except (ValueError, TypeError, AttributeError) as e:
                log.warning("feed_typed_parse_failed feed=%s err=%s fallback=raw", feed_id, e)
                feed = parse_feed_lenient(record)
        self._cache[feed_id] = feed
        return feed

    def get_inventory_by_feed_code(self) -> Dict[str, float]:
        inventory: Dict[str, float] = {}
        for rec in self.raw.get_inventory_records():
            code = pick(rec, "code", "feedCode", "feed_code")
            if not code:
                continue
            qty = to_float(pick(rec, "quantity_kg", "quantityKg", "quantity"))
            inventory[str(code)] = inventory.get(str(code), 0.0) + qty
        return inventory


class JsonBatchAssignmentRepository:
    def __init__(self, snapshot: JsonFarmSnapshot):
        self.snapshot = snapshot

    def get_active_assignments(self, batch_id: str) -> List[FeedAssignmentEntry]:
        entries: List[FeedAssignmentEntry] = []
        for rec in self.snapshot.list_assignment_records(batch_id):
            try:
                entry = parse_assignment(rec)
            except (TypeError, ValueError) as e:
                log.warning("assignment_skipped batch=%s err=%s", batch_id, e)
                continue
            if entry.active:
                entries.append(entry)
        return entries


class JsonTankStateRepository:
    def __init__(self, snapshot: JsonFarmSnapshot):
        self.snapshot = snapshot

    def refresh(self) -> None:
        self.snapshot.refresh()

    def _tanks(self) -> List[TankSnapshot]:
        tanks: List[TankSnapshot] = []
        for rec in self.snapshot.list_tank_records():
            try:
                tanks.append(parse_tank(rec))
            except (TypeError, ValueError) as e:
                log.warning("tank_record_skipped err=%s", e)
        return tanks

    def get_live_tanks(self) -> List[TankSnapshot]:
        return [t for t in self._tanks() if t.is_live]

    def get_tank(self, tank_id: str) -> Optional[TankSnapshot]:
        for t in self._tanks():
            if t.tank_id == str(tank_id):
                return t
        return None

    def get_batch_sgr(self, batch_ids: Iterable[str]) -> Dict[str, float]:
        wanted = {str(b) for b in batch_ids}
        out: Dict[str, float] = {}
        for rec in self.snapshot.list_batch_records():
            bid = str(pick(rec, "id", "batchId", default=""))
            sgr = to_float(pick(rec, "sgr", "sgrPercent"))
            if bid in wanted and sgr > 0:
                out[bid] = sgr
        return out
