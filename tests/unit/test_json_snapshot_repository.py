import json
from pathlib import Path

import pytest

from aquaforecast.infrastructure.catalog.feed_parsing import (
    parse_assignment, parse_feed, parse_feeding_curve, parse_feeding_matrix, parse_tank, to_float,
)
from aquaforecast.infrastructure.catalog.json_snapshot_repository import (
    FeedCatalogRepository, JsonBatchAssignmentRepository, JsonFarmSnapshot, JsonTankStateRepository,
)

SAMPLE = Path(__file__).resolve().parents[2] / "data" / "farm_snapshot.json"

# ---------- Parsing ----------

def test_matrix_stored_as_text_is_parsed():
    raw = json.dumps({"temperatures": [12, 16], "weights": [5, 50], "rates": [[3, 1.5], [4, 2]],
                      "fcrMatrix": [[1, 1.1], [1, 1.2]]})
    m = parse_feeding_matrix(raw)
    assert m.temperatures == (12.0, 16.0)
    assert m.fcr_matrix == ((1, 1.1), (1, 1.2))

def test_unreadable_matrix_becomes_none():
    assert parse_feeding_matrix("{não é json") is None
    assert parse_feeding_matrix({"temperatures": [12]}) is None
    assert parse_feeding_matrix("") is None

def test_inconsistent_matrix_is_kept():
    m = parse_feeding_matrix({"temperatures": [16, 12], "weights": [5], "rates": [[1.0]]})
    assert m is not None

def test_curve_skips_invalid_points():
    curve = parse_feeding_curve([
        {"fishWeightG": 5, "feedingRatePercent": 8.0, "fcr": 0.9},
        {"fish_weight_g": 20, "feeding_rate_percent": 5.0},
        {"fishWeightG": "abc", "feedingRatePercent": 4.0},
        {"fishWeightG": -1, "feedingRatePercent": 4.0},
    ])
    assert [p.fish_weight_g for p in curve] == [5.0, 20.0]
    assert curve.points[1].fcr is None

def test_curve_from_text_and_empty():
    assert len(parse_feeding_curve('[{"fishWeightG": 5, "feedingRatePercent": 8}]')) == 1
    assert parse_feeding_curve([]) is None
    assert parse_feeding_curve({"fishWeightG": 5}) is None

def test_parse_feed_requires_identity():
    feed = parse_feed({"id": 7, "code": "X1", "feeding_curve": [{"fishWeightG": 0, "feedingRatePercent": 2}]})
    assert feed.id == "7" and feed.name == "X1"
    assert len(feed.feeding_curve) == 1
    with pytest.raises(ValueError):
        parse_feed({"code": "X1"})

def test_parse_assignment_and_tank_keys():
    a = parse_assignment({"feed_id": "F1", "min_weight_g": 10})
    assert a.max_weight_g == float("inf") and a.contains(10_000)
    t = parse_tank({"tankId": 3, "avgWeightG": "12.5", "totalQuantity": "800", "primaryBatchId": 9})
    assert (t.tank_id, t.current_weight_g, t.current_count, t.batch_id) == ("3", 12.5, 800, "9")
    assert to_float("nan", 1.0) == 1.0

# ---------- Repositórios sobre o snapshot de exemplo ----------

def test_catalog_reads_sample_snapshot():
    catalog = FeedCatalogRepository(JsonFarmSnapshot(SAMPLE))
    grower = catalog.get_feed_by_id("F-GROWER")
    assert grower.code == "GROWER1"
    assert grower.feeding_matrix.temperatures == (12.0, 14.0, 16.0, 18.0, 20.0)
    assert grower.feeding_matrix.fcr_matrix is not None
    assert len(catalog.get_feed_by_id("F-STARTER").feeding_curve) == 3
    assert catalog.get_feed_by_id("nope") is None
    assert catalog.get_inventory_by_feed_code() == {"STARTER2": 180.0, "GROWER1": 2500.0, "FINISH6": 900.0}

def test_catalog_caches_typed_feeds():
    catalog = FeedCatalogRepository(JsonFarmSnapshot(SAMPLE))
    assert catalog.get_feed_by_id("F-GROWER") is catalog.get_feed_by_id("F-GROWER")

class _RawWithoutIds:
    def get_feed_record(self, feed_id):
        return {"code": "LEGACY", "name": "Ração antiga", "feedingCurve": "[]"}
    def refresh(self):
        self.refreshed = True
    def get_inventory_records(self):
        return [{"code": "LEGACY", "quantity_kg": "12.5"}, {"code": "LEGACY", "quantityKg": 2},
                {"quantity_kg": 99}]

def test_catalog_falls_back_to_raw_identity():
    catalog = FeedCatalogRepository(_RawWithoutIds())
    feed = catalog.get_feed_by_id("legacy-id")
    assert feed.code == "LEGACY"
    assert feed.feeding_curve is None and feed.feeding_matrix is None
    assert catalog.get_inventory_by_feed_code() == {"LEGACY": 14.5}

def test_inventory_falls_back_to_feed_quantity():
    snap = JsonFarmSnapshot.from_document({"feeds": [
        {"id": "A", "code": "A1", "quantity": 40},
        {"id": "B", "code": "B1"},
    ]})
    assert FeedCatalogRepository(snap).get_inventory_by_feed_code() == {"A1": 40.0, "B1": 0.0}

def test_assignments_only_active_and_valid():
    snap = JsonFarmSnapshot.from_document({"assignments": [
        {"batchId": "B1", "feedId": "F1", "minWeightG": 0, "maxWeightG": 20},
        {"batchId": "B1", "feedId": "F2", "minWeightG": 20, "maxWeightG": 200, "active": False},
        {"batchId": "B1", "feedId": "F3", "minWeightG": 50, "maxWeightG": 10},
        {"batchId": "B2", "feedId": "F4", "minWeightG": 0, "maxWeightG": 20},
    ]})
    entries = JsonBatchAssignmentRepository(snap).get_active_assignments("B1")
    assert [e.feed_id for e in entries] == ["F1"]

def test_tank_repository_on_sample():
    repo = JsonTankStateRepository(JsonFarmSnapshot(SAMPLE))
    assert [t.tank_id for t in repo.get_live_tanks()] == ["T1", "T2", "T3"]
    assert repo.get_tank("T4").current_count == 0
    assert repo.get_tank("T1").label == "T-01"
    assert repo.get_tank("missing") is None
    assert repo.get_batch_sgr(["B-2026-01", "B-2026-03"]) == {"B-2026-01": 1.6}

def test_snapshot_kept_until_refresh(tmp_path):
    path = tmp_path / "farm.json"
    path.write_text(json.dumps({"tanks": [{"tankId": "X", "avgWeightG": 10, "totalQuantity": 5}]}),
                    encoding="utf-8")
    snap = JsonFarmSnapshot(path)
    repo = JsonTankStateRepository(snap)
    assert repo.get_tank("X").biomass_kg == 0.05
    path.write_text("{}", encoding="utf-8")
    assert repo.get_tank("X") is not None
    repo.refresh()
    assert repo.get_tank("X") is None

def test_catalog_refresh_rereads_feeds_and_inventory(tmp_path):
    path = tmp_path / "farm.json"
    doc = {"feeds": [{"id": "A", "code": "A1", "name": "Antiga"}], "inventory": [{"code": "A1", "quantityKg": 10}]}
    path.write_text(json.dumps(doc), encoding="utf-8")
    catalog = FeedCatalogRepository(JsonFarmSnapshot(path))
    assert catalog.get_feed_by_id("A").name == "Antiga"
    assert catalog.get_inventory_by_feed_code() == {"A1": 10.0}

    doc["feeds"][0]["name"] = "Nova"
    doc["inventory"][0]["quantityKg"] = 999
    path.write_text(json.dumps(doc), encoding="utf-8")
    assert catalog.get_feed_by_id("A").name == "Antiga"

    catalog.refresh()
    assert catalog.get_feed_by_id("A").name == "Nova"
    assert catalog.get_inventory_by_feed_code() == {"A1": 999.0}

def test_in_memory_snapshot_survives_refresh():
    snap = JsonFarmSnapshot.from_document({"tanks": [{"tankId": "X", "avgWeightG": 10, "totalQuantity": 5}]})
    repo = JsonTankStateRepository(snap)
    repo.refresh()
    assert repo.get_tank("X") is not None

def test_catalog_refresh_reaches_raw_source():
    raw = _RawWithoutIds()
    FeedCatalogRepository(raw).refresh()
    assert raw.refreshed
