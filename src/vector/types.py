"""
Record types for the on-disk vector store.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class StorePaths:
    """Handle to the three co-located store artifacts."""

    bin_path: Path
    """Packed little-endian float32 records"""

    index_path: Path
    """Sidecar mapping asset id -> record offset"""

    meta_path: Path
    """Sidecar holding dim and count"""


class VectorMeta(BaseModel):
    """Contents of embeddings.meta.json."""

    dim: int
    count: int

    @field_validator('dim')
    @classmethod
    def dim_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError('dim must be positive')
        return v

    @field_validator('count')
    @classmethod
    def count_must_not_be_negative(cls, v):
        if v < 0:
            raise ValueError('count cannot be negative')
        return v


class VectorIndex(BaseModel):
    """Contents of embeddings.index.json."""

    model_config = ConfigDict(populate_by_name=True)

    id_to_offset: Dict[str, int] = Field(default_factory=dict, alias="idToOffset")


@dataclass(frozen=True)
class ScoredCandidate:
    """A record offset with its best similarity score during a scan."""

    offset: int
    score: float
