"""
Store integrity checks and the pipeline readiness checklist.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.vector.store import FLOAT_BYTES, load_index, load_meta, open_or_create
from src.vector.types import StorePaths
from util.logging import logger

from .assets import load_assets_if_present
from .config import AppConfig, validate_config


@dataclass
class MaintenanceReport:
    """Result of a store integrity check."""
    operation: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    issues_found: int = 0
    errors: List[str] = None
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.errors is None:
            self.errors = []
        if self.metadata is None:
            self.metadata = {}

    @property
    def ok(self) -> bool:
        return self.issues_found == 0

    def add_issue(self, message: str) -> None:
        self.issues_found += 1
        self.errors.append(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary for serialization."""
        data = {
            "operation": self.operation,
            "started_at": self.started_at.isoformat(),
            "issues_found": self.issues_found,
            "errors": self.errors,
            "metadata": self.metadata
        }
        if self.completed_at:
            data["completed_at"] = self.completed_at.isoformat()
        return data


def check_store_integrity(store: StorePaths) -> MaintenanceReport:
    """
    Check the size and index invariants of a vector store.

    An uninitialized store (no meta, no index, no data) is reported clean.
    """
    report = MaintenanceReport(
        operation="store_integrity_check",
        started_at=datetime.now()
    )

    meta = load_meta(store)
    idx = load_index(store)
    data_size = store.bin_path.stat().st_size if store.bin_path.exists() else None

    report.metadata["data_bytes"] = data_size
    report.metadata["index_entries"] = len(idx.id_to_offset)

    if meta is None:
        if idx.id_to_offset:
            report.add_issue("Index has entries but meta is missing")
        if data_size:
            report.add_issue(f"Data file has {data_size} bytes but meta is missing")
        report.completed_at = datetime.now()
        return report

    report.metadata["dim"] = meta.dim
    report.metadata["count"] = meta.count

    expected_size = meta.count * meta.dim * FLOAT_BYTES
    if data_size is None:
        if meta.count > 0:
            report.add_issue(f"Data file missing, meta count is {meta.count}")
    elif data_size != expected_size:
        report.add_issue(f"Data file is {data_size} bytes, expected {expected_size} (count={meta.count}, dim={meta.dim})")

    offsets = list(idx.id_to_offset.values())
    if len(set(offsets)) != len(offsets):
        report.add_issue("Index maps several ids to the same offset")
    if set(offsets) != set(range(meta.count)):
        missing = sorted(set(range(meta.count)) - set(offsets))
        extra = sorted(set(offsets) - set(range(meta.count)))
        report.add_issue(f"Index offsets do not cover 0..{meta.count - 1}: missing={missing[:10]} extra={extra[:10]}")

    report.completed_at = datetime.now()
    status = "success" if report.ok else "warning"
    logger.log_operation("maintenance.store_integrity", status, report.metadata)
    return report


@dataclass
class VerifyLine:
    ok: bool
    label: str
    detail: Optional[str] = None


def verify(cfg: AppConfig, store: Optional[StorePaths] = None) -> List[VerifyLine]:
    """Checklist of what the pipeline has produced so far."""
    store = store if store is not None else open_or_create(cfg.data_dir)

    assets_ok = cfg.assets_path.exists()
    assets = load_assets_if_present(cfg)
    reps_count = sum(1 for a in assets if a.rep_path)

    meta = load_meta(store)
    idx = load_index(store)
    integrity = check_store_integrity(store)
    config_issues = validate_config(cfg)

    return [
        VerifyLine(True, "Config: PHOTO_LIB", cfg.photo_lib_root),
        VerifyLine(not config_issues, "Config: embedding and query settings", "; ".join(config_issues) or cfg.embed_provider),
        VerifyLine(assets_ok, "Scan: data/assets.json exists", f"{len(assets)} assets" if assets_ok else None),
        VerifyLine(reps_count > 0, "Reps: some rep JPGs recorded", f"{reps_count}/{len(assets)}"),
        VerifyLine(store.bin_path.exists(), "Embeddings: data/embeddings.f32 exists"),
        VerifyLine(store.index_path.exists(), "Embeddings: data/embeddings.index.json exists"),
        VerifyLine(store.meta_path.exists(), "Embeddings: data/embeddings.meta.json exists"),
        VerifyLine(
            meta is not None and meta.count > 0,
            "Embeddings: meta.count > 0",
            f"dim={meta.dim}, count={meta.count}" if meta else "missing meta",
        ),
        VerifyLine(len(idx.id_to_offset) > 0, "Embeddings: index has entries", str(len(idx.id_to_offset))),
        VerifyLine(integrity.ok, "Embeddings: store integrity", "; ".join(integrity.errors) or None),
    ]


def format_verify(lines: List[VerifyLine]) -> str:
    rows = []
    for line in lines:
        icon = "✅" if line.ok else "❌"
        suffix = f" - {line.detail}" if line.detail else ""
        rows.append(f"{icon} {line.label}{suffix}")
    return "\n".join(rows)
