"""
Tests for store integrity checks and the verify checklist.
"""

import json

import pytest

from src.core.config import AppConfig
from src.core.maintenance import MaintenanceReport, check_store_integrity, format_verify, verify
from src.vector.store import append_vector, open_or_create


@pytest.fixture
def cfg(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return AppConfig(
        data_dir=data_dir,
        profiles_dir=tmp_path / "profiles",
        photo_lib_root="/photos",
    )


@pytest.fixture
def store(cfg):
    store = open_or_create(cfg.data_dir)
    append_vector(store, "a", [1.0, 0.0])
    append_vector(store, "b", [0.0, 1.0])
    return store


def test_report_to_dict():
    from datetime import datetime

    report = MaintenanceReport(operation="store_integrity_check", started_at=datetime(2025, 1, 1))
    report.add_issue("broken")

    data = report.to_dict()
    assert data["issues_found"] == 1
    assert data["errors"] == ["broken"]
    assert "completed_at" not in data
    assert not report.ok


def test_healthy_store(store):
    report = check_store_integrity(store)

    assert report.ok
    assert report.metadata["count"] == 2
    assert report.metadata["data_bytes"] == 16


def test_uninitialized_store_is_clean(cfg):
    assert check_store_integrity(open_or_create(cfg.data_dir)).ok


def test_detects_size_mismatch(store):
    with open(store.bin_path, "ab") as f:
        f.write(b"\x00" * 3)

    report = check_store_integrity(store)

    assert not report.ok
    assert "19 bytes" in report.errors[0]


def test_detects_index_gap(store):
    store.index_path.write_text(json.dumps({"idToOffset": {"a": 0, "b": 5}}))

    report = check_store_integrity(store)

    assert not report.ok
    assert any("missing=[1]" in e for e in report.errors)


def test_detects_duplicate_offsets(store):
    store.index_path.write_text(json.dumps({"idToOffset": {"a": 0, "b": 0}}))

    report = check_store_integrity(store)

    assert any("same offset" in e for e in report.errors)


def test_verify_fresh_workspace(cfg):
    lines = verify(cfg)

    assert lines[0].ok
    assert lines[0].detail == "/photos"
    assert not all(line.ok for line in lines)


def test_verify_complete_pipeline(cfg, store):
    cfg.assets_path.write_text(json.dumps([
        {"id": "a", "absPath": "/photos/a.jpg", "relPath": "a.jpg", "repPath": "/reps/a.jpg"},
        {"id": "b", "absPath": "/photos/b.jpg", "relPath": "b.jpg", "repPath": "/reps/b.jpg"},
    ]))

    lines = verify(cfg)

    assert all(line.ok for line in lines)
    text = format_verify(lines)
    assert "✅ Embeddings: meta.count > 0 - dim=2, count=2" in text
    assert "❌" not in text
