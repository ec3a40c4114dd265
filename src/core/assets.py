"""
Read-only access to the asset registry (data/assets.json).
"""

import json
from pathlib import Path
from typing import Dict, List

from .config import AppConfig
from .schema import Asset


class AssetsNotFoundError(FileNotFoundError):
    """Raised when the asset registry has not been produced yet."""
    pass


def manifest_path(cfg: AppConfig) -> Path:
    return cfg.assets_path


def load_assets(cfg: AppConfig) -> List[Asset]:
    """Load every asset record in registry order."""
    path = manifest_path(cfg)
    if not path.exists():
        raise AssetsNotFoundError(
            f"{path} not found. Run: media-tagger scan (then reps, embed)."
        )
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return [Asset.model_validate(item) for item in raw]


def load_assets_if_present(cfg: AppConfig) -> List[Asset]:
    """Like load_assets, but an absent registry is simply empty."""
    if not manifest_path(cfg).exists():
        return []
    return load_assets(cfg)


def assets_by_id(assets: List[Asset]) -> Dict[str, Asset]:
    return {a.id: a for a in assets}
