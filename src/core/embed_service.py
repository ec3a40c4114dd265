"""
Embed step: turn representative images into stored vectors.
"""

from dataclasses import dataclass
from typing import Optional

from src.vector.embeddings import IEmbeddingProvider
from src.vector.store import append_vector, load_index, load_meta, open_or_create
from src.vector.types import StorePaths
from util.logging import logger

from .assets import load_assets
from .config import AppConfig, get_embedding_provider
from .progress import load_progress, mark_embed_done, save_progress


@dataclass
class EmbedSummary:
    total: int
    embedded: int = 0
    skipped: int = 0


def compute_embeddings(
    cfg: AppConfig,
    provider: Optional[IEmbeddingProvider] = None,
    store: Optional[StorePaths] = None,
    log_every: int = 25,
) -> EmbedSummary:
    """
    Embed every asset that has a representative image and append it.

    Assets already indexed (or marked done in progress.json) are skipped, so
    the step can be re-run after an interruption. Progress is saved even if
    an embedding fails part way; the failure itself propagates.
    """
    assets = load_assets(cfg)
    reps = [a for a in assets if a.rep_path]

    store = store if store is not None else open_or_create(cfg.data_dir)
    existing_idx = load_index(store)
    existing_meta = load_meta(store)
    dim = existing_meta.dim if existing_meta is not None else None

    provider = provider if provider is not None else get_embedding_provider(cfg)
    prog = load_progress(cfg)
    summary = EmbedSummary(total=len(reps))

    try:
        for asset in reps:
            already = prog.embeds_done.get(asset.id) is True or asset.id in existing_idx.id_to_offset
            if already:
                summary.skipped += 1
                continue

            vec = provider.embed_image(asset.rep_path)
            if dim is None:
                dim = len(vec)

            append_vector(store, asset.id, vec, expected_dim=dim)
            prog = mark_embed_done(prog, asset.id)
            summary.embedded += 1

            if summary.embedded % log_every == 0:
                logger.log_embed_progress(summary.embedded + summary.skipped, summary.total)
    finally:
        save_progress(cfg, prog)

    logger.log_embed_progress(summary.embedded + summary.skipped, summary.total, status="success")
    return summary
