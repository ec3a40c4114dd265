"""
Nearest-neighbour queries over the embedding store.

Every query is an exact linear scan: each stored vector is normalized and
scored against the anchors, the best score per record is filtered by
min_score and fed to a bounded TopK, and the survivors are resolved back to
asset records. Results are written to the requested output file and mirrored
to data/last_query.json, which the review tooling reads.
"""

import json
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from src.vector.embeddings import IEmbeddingProvider
from src.vector.similarity import dot, normalize
from src.vector.store import (
    DimensionMismatchError,
    invert_index,
    load_index,
    load_meta,
    open_or_create,
    stream_all,
)
from src.vector.topk import TopK
from src.vector.types import ScoredCandidate, StorePaths, VectorMeta
from util.logging import logger

from .assets import assets_by_id, load_assets
from .config import AppConfig, get_embedding_provider
from .schema import Asset, QueryRow


class StoreNotInitializedError(Exception):
    """Raised when a query runs before any embeddings were stored."""

    def __init__(self, meta_path: Path):
        self.meta_path = meta_path
        super().__init__(
            f"Vector store not initialized ({meta_path} not found). Run: media-tagger embed"
        )


def query_similar_multi(
    cfg: AppConfig,
    anchor_paths: Sequence[str],
    k: int,
    min_score: float,
    out_name: str,
    provider: Optional[IEmbeddingProvider] = None,
    store: Optional[StorePaths] = None,
) -> List[QueryRow]:
    """
    Rank stored assets against one or more anchor images.

    A candidate's score is its maximum similarity over all anchors, so an
    asset close to any single anchor ranks high.

    Args:
        cfg: application configuration
        anchor_paths: image files to embed as anchors
        k: maximum number of rows to return
        min_score: candidates scoring below this are discarded
        out_name: file name, relative to the data dir, for the results
        provider: optional embedding provider for testing
        store: optional store handle, defaults to the one under cfg.data_dir

    Returns:
        Rows ordered by descending score
    """
    if not anchor_paths:
        raise ValueError("Provide at least one anchor.")

    store = store if store is not None else open_or_create(cfg.data_dir)
    id_to_asset, meta, offset_to_id = _load_query_state(cfg, store)

    provider = provider if provider is not None else get_embedding_provider(cfg)
    anchors = [provider.embed_image(p) for p in anchor_paths]

    return _run_query(cfg, store, meta, offset_to_id, id_to_asset, anchors, k, min_score, out_name, kind="image")


def query_similar_text(
    cfg: AppConfig,
    text: str,
    k: int,
    min_score: float,
    out_name: str,
    provider: Optional[IEmbeddingProvider] = None,
    store: Optional[StorePaths] = None,
) -> List[QueryRow]:
    """
    Rank stored assets against a single text prompt.

    Raises:
        DimensionMismatchError: the text embedding length differs from the store dim
    """
    store = store if store is not None else open_or_create(cfg.data_dir)
    id_to_asset, meta, offset_to_id = _load_query_state(cfg, store)

    provider = provider if provider is not None else get_embedding_provider(cfg)
    text_vec = provider.embed_text(text)
    if len(text_vec) != meta.dim:
        raise DimensionMismatchError(expected=meta.dim, actual=len(text_vec), record_id="text prompt")

    return _run_query(cfg, store, meta, offset_to_id, id_to_asset, [text_vec], k, min_score, out_name, kind="text")


def query_similar_vectors(
    cfg: AppConfig,
    anchor_vectors: Sequence[Sequence[float]],
    k: int,
    min_score: float,
    out_name: str,
    store: Optional[StorePaths] = None,
) -> List[QueryRow]:
    """Rank stored assets against anchor vectors that are already computed."""
    if len(anchor_vectors) == 0:
        raise ValueError("Provide at least one anchor.")

    store = store if store is not None else open_or_create(cfg.data_dir)
    id_to_asset, meta, offset_to_id = _load_query_state(cfg, store)
    return _run_query(cfg, store, meta, offset_to_id, id_to_asset, anchor_vectors, k, min_score, out_name, kind="vector")


def scan_candidates(
    store: StorePaths,
    meta: VectorMeta,
    anchors: Sequence[np.ndarray],
    k: int,
    min_score: float,
    offset_to_id: Dict[int, str],
) -> List[ScoredCandidate]:
    """
    Stream every record and keep the k best (offset, score) pairs.

    Anchors must already be normalized. Records whose offset has no index
    entry are skipped, as are records whose score is not finite.
    """
    top = TopK(k, score_of=lambda c: c.score)

    for offset, vec in stream_all(store, meta.dim):
        if offset not in offset_to_id:
            continue

        v = normalize(vec)
        best = max(dot(a, v) for a in anchors)

        if not math.isfinite(best) or best < min_score:
            continue
        top.offer(ScoredCandidate(offset=offset, score=best))

    return top.values_sorted_desc()


def write_query_output(cfg: AppConfig, out_name: str, rows: List[QueryRow]) -> Path:
    """Write rows to the named output and overwrite the last-query snapshot."""
    payload = [row.model_dump(by_alias=True) for row in rows]
    out_path = cfg.data_dir / out_name

    for path in (out_path, cfg.last_query_path):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    return out_path


def _load_query_state(cfg: AppConfig, store: StorePaths):
    assets = load_assets(cfg)

    meta = load_meta(store)
    if meta is None:
        raise StoreNotInitializedError(store.meta_path)

    idx = load_index(store)
    return assets_by_id(assets), meta, invert_index(idx)


def _run_query(
    cfg: AppConfig,
    store: StorePaths,
    meta: VectorMeta,
    offset_to_id: Dict[int, str],
    id_to_asset: Dict[str, Asset],
    anchors: Sequence[Sequence[float]],
    k: int,
    min_score: float,
    out_name: str,
    kind: str,
) -> List[QueryRow]:
    normalized = [normalize(a) for a in anchors]
    best = scan_candidates(store, meta, normalized, k, min_score, offset_to_id)

    rows = []
    dropped = 0
    for candidate in best:
        record_id = offset_to_id.get(candidate.offset)
        asset = id_to_asset.get(record_id) if record_id is not None else None
        if asset is None:
            # Index and registry disagree; keep going with what resolves.
            dropped += 1
            logger.log_operation(
                "query.resolve", "dropped",
                {"offset": candidate.offset, "id": record_id},
            )
            continue

        rows.append(QueryRow(
            id=record_id,
            score=candidate.score,
            abs_path=asset.abs_path,
            rel_path=asset.rel_path,
        ))

    write_query_output(cfg, out_name, rows)
    logger.log_query(kind, len(anchors), k, min_score, len(rows), {"dropped": dropped, "out": out_name})
    return rows
