"""
Resumable progress markers for the reps/embed steps (data/progress.json).
"""

import json
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from .config import AppConfig


class Progress(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reps_done: Dict[str, bool] = Field(default_factory=dict, alias="repsDone")
    embeds_done: Dict[str, bool] = Field(default_factory=dict, alias="embedsDone")


def load_progress(cfg: AppConfig) -> Progress:
    if not cfg.progress_path.exists():
        return Progress()
    return Progress.model_validate_json(cfg.progress_path.read_text(encoding="utf-8"))


def save_progress(cfg: AppConfig, prog: Progress) -> None:
    cfg.progress_path.parent.mkdir(parents=True, exist_ok=True)
    with open(cfg.progress_path, "w", encoding="utf-8") as f:
        json.dump(prog.model_dump(by_alias=True), f, indent=2)


def mark_embed_done(prog: Progress, record_id: str) -> Progress:
    return prog.model_copy(update={"embeds_done": {**prog.embeds_done, record_id: True}})
