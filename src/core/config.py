"""
Runtime configuration for media-tagger.

Values come from the environment (and a local .env file). Operations never
read these globals directly; callers build an AppConfig with get_config()
and pass it down explicitly.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Storage locations
DATA_DIR = os.getenv("DATA_DIR", "./data")
PROFILES_DIR = os.getenv("PROFILES_DIR", "./profiles")
PHOTO_LIB = os.getenv("PHOTO_LIB", "/PATH/TO/LIBRARY")

# Embedding provider configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "clip")  # clip|hash
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "clip-ViT-B-32")
HASH_EMBED_DIM = int(os.getenv("HASH_EMBED_DIM", "512"))

# Query defaults (overridden by profiles and CLI flags)
QUERY_DEFAULT_K = int(os.getenv("QUERY_DEFAULT_K", "700"))
QUERY_DEFAULT_MIN_SCORE = float(os.getenv("QUERY_DEFAULT_MIN_SCORE", "0.0"))

# Fixed artifact names
ASSETS_FILE = "assets.json"
PROGRESS_FILE = "progress.json"
LAST_QUERY_FILE = "last_query.json"
DEFAULT_QUERY_OUT = "candidates.json"

VERSION = "0.3.0"


@dataclass(frozen=True)
class AppConfig:
    """Explicit configuration handle passed to every operation."""

    data_dir: Path
    profiles_dir: Path
    photo_lib_root: str
    embed_provider: str = "clip"
    embed_model_name: str = "clip-ViT-B-32"
    hash_embed_dim: int = 512
    default_k: int = 700
    default_min_score: float = 0.0

    @property
    def assets_path(self) -> Path:
        return self.data_dir / ASSETS_FILE

    @property
    def progress_path(self) -> Path:
        return self.data_dir / PROGRESS_FILE

    @property
    def last_query_path(self) -> Path:
        return self.data_dir / LAST_QUERY_FILE


def get_config(data_dir: Optional[str] = None) -> AppConfig:
    """Build an AppConfig from the current environment."""
    return AppConfig(
        data_dir=Path(data_dir or os.getenv("DATA_DIR", DATA_DIR)),
        profiles_dir=Path(os.getenv("PROFILES_DIR", PROFILES_DIR)),
        photo_lib_root=os.getenv("PHOTO_LIB", PHOTO_LIB),
        embed_provider=os.getenv("EMBED_PROVIDER", EMBED_PROVIDER),
        embed_model_name=os.getenv("EMBED_MODEL_NAME", EMBED_MODEL_NAME),
        hash_embed_dim=int(os.getenv("HASH_EMBED_DIM", str(HASH_EMBED_DIM))),
        default_k=int(os.getenv("QUERY_DEFAULT_K", str(QUERY_DEFAULT_K))),
        default_min_score=float(os.getenv("QUERY_DEFAULT_MIN_SCORE", str(QUERY_DEFAULT_MIN_SCORE))),
    )


def get_embedding_provider(cfg: AppConfig):
    """Get configured embedding provider implementation."""
    if cfg.embed_provider == "hash":
        from src.vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding(dimension=cfg.hash_embed_dim)
    elif cfg.embed_provider == "clip":
        from src.vector.embeddings import ClipEmbedding
        return ClipEmbedding(model_name=cfg.embed_model_name)
    else:
        raise ValueError(f"Invalid EMBED_PROVIDER: {cfg.embed_provider} (expected clip|hash)")


def ensure_data_directory(cfg: AppConfig):
    """Ensure the data and profiles directories exist."""
    cfg.data_dir.mkdir(parents=True, exist_ok=True)
    cfg.profiles_dir.mkdir(parents=True, exist_ok=True)


def validate_config(cfg: AppConfig):
    """Validate configuration and return any issues."""
    issues = []

    if cfg.embed_provider not in ["clip", "hash"]:
        issues.append(f"Invalid EMBED_PROVIDER: {cfg.embed_provider}")

    if cfg.hash_embed_dim < 1:
        issues.append("HASH_EMBED_DIM must be >= 1")

    if cfg.default_k < 1:
        issues.append("QUERY_DEFAULT_K must be >= 1")

    return issues
