"""
Tests for the cosine similarity primitives.
"""

import math

import numpy as np
import pytest

from src.vector.similarity import l2_norm, normalize, dot, cosine_similarity


def test_l2_norm_basic():
    assert l2_norm([3.0, 4.0]) == pytest.approx(5.0)
    assert l2_norm([0.0, 0.0, 0.0]) == 0.0


def test_normalize_has_unit_norm():
    """Any non-zero vector normalizes to length 1."""
    rng = np.random.default_rng(7)
    for _ in range(20):
        v = rng.normal(size=16) * rng.uniform(0.001, 1000)
        assert l2_norm(normalize(v)) == pytest.approx(1.0, abs=1e-9)


def test_normalize_zero_vector_unchanged():
    zero = [0.0, 0.0, 0.0]
    result = normalize(zero)
    assert list(result) == zero


def test_normalize_returns_copy():
    v = np.array([0.0, 0.0], dtype=np.float64)
    result = normalize(v)
    result[0] = 5.0
    assert v[0] == 0.0


def test_dot_uses_overlapping_prefix():
    assert dot([1.0, 2.0, 3.0], [4.0, 5.0]) == pytest.approx(14.0)
    assert dot([], [1.0]) == 0.0


def test_cosine_similarity_range():
    assert cosine_similarity([1, 0, 0], [1, 0, 0]) == pytest.approx(1.0)
    assert cosine_similarity([1, 0, 0], [0, 1, 0]) == pytest.approx(0.0)
    assert cosine_similarity([1, 0, 0], [-2, 0, 0]) == pytest.approx(-1.0)
    assert cosine_similarity([1, 0, 0], [0.6, 0.8, 0]) == pytest.approx(0.6)


def test_cosine_similarity_ignores_magnitude():
    a = [1.0, 2.0, 3.0]
    b = [10.0, 20.0, 30.0]
    assert cosine_similarity(a, b) == pytest.approx(1.0)


def test_cosine_with_zero_vector_is_zero():
    assert cosine_similarity([0, 0, 0], [1, 2, 3]) == 0.0
    assert not math.isnan(cosine_similarity([0, 0], [0, 0]))
