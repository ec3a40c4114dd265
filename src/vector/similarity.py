"""
Cosine similarity primitives over embedding vectors.
"""

from typing import Sequence, Union

import numpy as np

VectorLike = Union[Sequence[float], np.ndarray]


def _as_array(v: VectorLike) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).ravel()


def l2_norm(v: VectorLike) -> float:
    """Euclidean norm of a vector."""
    return float(np.linalg.norm(_as_array(v)))


def normalize(v: VectorLike) -> np.ndarray:
    """
    Scale a vector to unit L2 norm.

    A zero vector is returned unchanged (as a copy); its dot product with
    anything is zero, so it can only be a nearest match when every score is 0.
    """
    arr = _as_array(v)
    norm = np.linalg.norm(arr)
    if norm == 0:
        return arr.copy()
    return arr / norm


def dot(a: VectorLike, b: VectorLike) -> float:
    """Inner product over the overlapping prefix of two vectors."""
    arr_a = _as_array(a)
    arr_b = _as_array(b)
    n = min(arr_a.shape[0], arr_b.shape[0])
    return float(np.dot(arr_a[:n], arr_b[:n]))


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine similarity in [-1, 1] for dimension-matched vectors."""
    return dot(normalize(a), normalize(b))
