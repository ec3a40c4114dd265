"""
Exact-scan vector store and similarity primitives.
"""

# Package initialization for vector module
from .similarity import l2_norm, normalize, dot, cosine_similarity
from .topk import TopK
from .types import StorePaths, VectorMeta, VectorIndex, ScoredCandidate
from .store import (
    DimensionMismatchError,
    VectorStoreError,
    open_or_create,
    load_meta,
    load_index,
    save_index,
    save_meta,
    invert_index,
    append_vector,
    stream_all,
)
from .embeddings import IEmbeddingProvider, DeterministicHashEmbedding, ClipEmbedding

__all__ = [
    'l2_norm',
    'normalize',
    'dot',
    'cosine_similarity',
    'TopK',
    'StorePaths',
    'VectorMeta',
    'VectorIndex',
    'ScoredCandidate',
    'DimensionMismatchError',
    'VectorStoreError',
    'open_or_create',
    'load_meta',
    'load_index',
    'save_index',
    'save_meta',
    'invert_index',
    'append_vector',
    'stream_all',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'ClipEmbedding',
]
