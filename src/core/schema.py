"""
JSON records shared with the scan/review tooling.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Asset(BaseModel):
    """One entry of data/assets.json, written by the scan step."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    abs_path: str = Field(alias="absPath")
    rel_path: str = Field(alias="relPath")
    ext: str = ""
    kind: Literal["image", "video"] = "image"
    rep_path: Optional[str] = Field(default=None, alias="repPath")


class QueryRow(BaseModel):
    """One ranked match, as persisted to the query output files."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    score: float
    abs_path: str = Field(alias="absPath")
    rel_path: str = Field(alias="relPath")


class QueryDefaults(BaseModel):
    k: int
    min_score: float = Field(alias="minScore", allow_inf_nan=False)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('k')
    @classmethod
    def k_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError('k must be positive')
        return v


class TagProfile(BaseModel):
    """A tagging profile from profiles/<name>.json."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    tag_template: str = Field(alias="tagTemplate")
    query_defaults: QueryDefaults = Field(alias="queryDefaults")
    auto_tags: List[Literal["year", "camera", "location"]] = Field(default_factory=list, alias="autoTags")

    @field_validator('name', 'tag_template')
    @classmethod
    def must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('cannot be empty')
        return v
