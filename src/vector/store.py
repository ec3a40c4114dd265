"""
Append-only on-disk vector store.

Layout inside the data directory:
    embeddings.f32         records of `dim` little-endian float32, no header
    embeddings.index.json  {"idToOffset": {id: offset}}
    embeddings.meta.json   {"dim": int, "count": int}

Between operations size(embeddings.f32) == count * dim * 4 and idToOffset is
a bijection onto 0..count-1. The store takes no locks: a single process must
own it for the duration of an append or a scan, and appending while a scan
is running is undefined. Index and meta are rewritten whole on every append,
so append cost grows with the number of indexed ids.
"""

import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from util.logging import logger

from .types import StorePaths, VectorIndex, VectorMeta

BIN_FILE = "embeddings.f32"
INDEX_FILE = "embeddings.index.json"
META_FILE = "embeddings.meta.json"

FLOAT_BYTES = 4
RECORD_DTYPE = np.dtype("<f4")


class VectorStoreError(Exception):
    """Raised when the on-disk store is inconsistent."""
    pass


class DimensionMismatchError(ValueError):
    """Raised when a vector's length disagrees with the store dimension."""

    def __init__(self, expected: int, actual: int, record_id: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        self.record_id = record_id
        subject = f" for {record_id}" if record_id else ""
        super().__init__(f"Vector dim mismatch{subject}: got {actual}, expected {expected}")


def open_or_create(data_dir: Union[str, Path]) -> StorePaths:
    """Resolve the store artifact paths; none of them need exist yet."""
    root = Path(data_dir)
    return StorePaths(
        bin_path=root / BIN_FILE,
        index_path=root / INDEX_FILE,
        meta_path=root / META_FILE,
    )


def load_meta(store: StorePaths) -> Optional[VectorMeta]:
    """Load store metadata, or None when the store was never initialized."""
    if not store.meta_path.exists():
        return None
    return VectorMeta.model_validate_json(store.meta_path.read_text(encoding="utf-8"))


def load_index(store: StorePaths) -> VectorIndex:
    """Load the id -> offset index; a missing file is an empty index."""
    if not store.index_path.exists():
        return VectorIndex()
    return VectorIndex.model_validate_json(store.index_path.read_text(encoding="utf-8"))


def save_index(store: StorePaths, idx: VectorIndex) -> None:
    _atomic_write_text(store.index_path, idx.model_dump_json(by_alias=True, indent=2))


def save_meta(store: StorePaths, meta: VectorMeta) -> None:
    _atomic_write_text(store.meta_path, meta.model_dump_json(indent=2))


def invert_index(idx: VectorIndex) -> Dict[int, str]:
    """Map record offsets back to asset ids."""
    return {offset: record_id for record_id, offset in idx.id_to_offset.items()}


def append_vector(
    store: StorePaths,
    record_id: str,
    vector: Union[Sequence[float], np.ndarray],
    expected_dim: Optional[int] = None,
) -> bool:
    """
    Append one vector under `record_id`.

    Returns False (and writes nothing) when the id is already indexed.
    Data bytes are appended and fsynced before the index and meta sidecars
    are replaced, so the index never points past the end of the data file.
    Meta is the commit point: index entries at or past meta.count belong to
    an append that never committed and are discarded before anything else.
    If a sidecar write fails the previous index is restored and the data file
    truncated back before the error propagates.

    Raises:
        DimensionMismatchError: vector length differs from the resolved dim
    """
    meta = load_meta(store)
    idx = _committed_index(store, meta)
    if record_id in idx.id_to_offset:
        logger.log_vector_operation("append", record_id, {"reason": "already indexed"}, status="skipped")
        return False

    arr = np.asarray(vector, dtype=RECORD_DTYPE).ravel()

    if expected_dim is not None:
        dim = expected_dim
    elif meta is not None:
        dim = meta.dim
    else:
        dim = arr.shape[0]

    if arr.shape[0] != dim:
        raise DimensionMismatchError(expected=dim, actual=arr.shape[0], record_id=record_id)
    if meta is not None and meta.dim != dim:
        raise DimensionMismatchError(expected=meta.dim, actual=dim, record_id=record_id)

    _ensure_bin_exists(store.bin_path)

    offset = meta.count if meta is not None else 0
    record_bytes = dim * FLOAT_BYTES
    _trim_trailing_bytes(store.bin_path, offset * record_bytes)
    previous_size = offset * record_bytes

    with open(store.bin_path, "ab") as f:
        f.write(arr.tobytes())
        f.flush()
        os.fsync(f.fileno())

    next_idx = VectorIndex(id_to_offset={**idx.id_to_offset, record_id: offset})
    next_meta = VectorMeta(dim=dim, count=offset + 1)

    try:
        save_index(store, next_idx)
        save_meta(store, next_meta)
    except OSError:
        logger.log_vector_operation("append", record_id, {"offset": offset, "rollback_to": previous_size}, status="failed")
        save_index(store, idx)
        _truncate(store.bin_path, previous_size)
        raise

    logger.log_vector_operation("append", record_id, {"offset": offset, "dim": dim})
    return True


def stream_all(store: StorePaths, dim: int) -> Iterator[Tuple[int, np.ndarray]]:
    """
    Lazily yield (offset, vector) for every whole record in ascending order.

    Records are read one at a time into a single `dim * 4` byte buffer, so
    memory stays O(dim) regardless of store size. Each yielded vector is an
    independent float32 array. The data file is opened when iteration starts;
    I/O errors propagate unchanged.
    """
    record_bytes = dim * FLOAT_BYTES
    if record_bytes <= 0:
        raise ValueError(f"Invalid dim for stream_all: {dim}")
    return _iter_records(store.bin_path, record_bytes)


def _iter_records(bin_path: Path, record_bytes: int) -> Iterator[Tuple[int, np.ndarray]]:
    with open(bin_path, "rb") as f:
        size = os.fstat(f.fileno()).st_size
        count = size // record_bytes
        buf = bytearray(record_bytes)

        for offset in range(count):
            read = f.readinto(buf)
            if read != record_bytes:
                raise VectorStoreError(
                    f"Short read at record {offset}: got {read} bytes, expected {record_bytes}"
                )
            yield offset, np.frombuffer(buf, dtype=RECORD_DTYPE).copy()


def _committed_index(store: StorePaths, meta: Optional[VectorMeta]) -> VectorIndex:
    """Load the index without entries from appends that never reached meta."""
    idx = load_index(store)
    count = meta.count if meta is not None else 0
    committed = {rid: off for rid, off in idx.id_to_offset.items() if off < count}
    if len(committed) == len(idx.id_to_offset):
        return idx

    stale = sorted(set(idx.id_to_offset) - set(committed))
    logger.warning(f"Dropping uncommitted index entries {stale} from {store.index_path}")
    idx = VectorIndex(id_to_offset=committed)
    save_index(store, idx)
    return idx


def _ensure_bin_exists(bin_path: Path) -> None:
    if bin_path.exists():
        return
    bin_path.parent.mkdir(parents=True, exist_ok=True)
    bin_path.write_bytes(b"")


def _trim_trailing_bytes(bin_path: Path, expected_size: int) -> None:
    """Drop bytes left past the last indexed record by an interrupted append."""
    actual_size = bin_path.stat().st_size
    if actual_size == expected_size:
        return
    if actual_size < expected_size:
        raise VectorStoreError(
            f"Data file {bin_path} is {actual_size} bytes, meta requires {expected_size}"
        )
    logger.warning(f"Trimming {actual_size - expected_size} unindexed bytes from {bin_path}")
    _truncate(bin_path, expected_size)


def _truncate(bin_path: Path, size: int) -> None:
    with open(bin_path, "r+b") as f:
        f.truncate(size)
        f.flush()
        os.fsync(f.fileno())


def _atomic_write_text(path: Path, text: str) -> None:
    """Write to a temp file in the same directory, fsync, then rename over."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
