"""
Tag profiles: named query defaults plus a tag template.
"""

from pathlib import Path
from typing import List

from pydantic import ValidationError

from .config import AppConfig
from .schema import TagProfile


class ProfileError(Exception):
    """Raised when a profile is missing or malformed."""
    pass


def load_profile(cfg: AppConfig, name_or_path: str) -> TagProfile:
    """
    Load a profile by name (profiles/<name>.json) or by explicit .json path.

    Raises:
        ProfileError: file missing or failing validation
    """
    if name_or_path.endswith(".json"):
        path = Path(name_or_path)
        if not path.is_absolute():
            path = Path.cwd() / path
    else:
        path = cfg.profiles_dir / f"{name_or_path}.json"

    if not path.exists():
        raise ProfileError(f"Profile not found: {path}")

    try:
        return TagProfile.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise ProfileError(f"Invalid profile {path}: {e}") from e


def list_profiles(cfg: AppConfig) -> List[str]:
    if not cfg.profiles_dir.exists():
        return []
    return sorted(
        p.stem for p in cfg.profiles_dir.iterdir()
        if p.is_file() and p.suffix.lower() == ".json"
    )


def render_tag(template: str, label: str) -> str:
    return template.replace("{label}", label.strip())
