from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BoardRole(str, Enum):
    EDITOR_IN_CHIEF = "Editor-in-Chief"
    ASSOCIATE_EDITOR = "Associate Editor"
    FOUNDING_EDITOR = "Founding Editor"
    SENIOR_ASSOCIATE_EDITOR = "Senior Associate Editor"


# 中文注释: 公开编委页的分组顺序与复数标题
BOARD_SECTIONS: list[tuple[BoardRole, str]] = [
    (BoardRole.EDITOR_IN_CHIEF, "Editors-in-Chief"),
    (BoardRole.FOUNDING_EDITOR, "Founding Editors"),
    (BoardRole.SENIOR_ASSOCIATE_EDITOR, "Senior Associate Editors"),
    (BoardRole.ASSOCIATE_EDITOR, "Associate Editors"),
]


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


class BoardMemberCreate(BaseModel):
    user_id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=200)
    qualifications: Optional[str] = Field(None, max_length=300)
    affiliation: Optional[str] = Field(None, max_length=300)
    country: Optional[str] = Field(None, max_length=100)
    role: BoardRole
    image_seed: Optional[str] = Field(None, max_length=200)

    @field_validator("user_id", "name", "qualifications", "affiliation", "country", "image_seed", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class BoardMemberUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    qualifications: Optional[str] = Field(None, max_length=300)
    affiliation: Optional[str] = Field(None, min_length=1, max_length=300)
    country: Optional[str] = Field(None, max_length=100)
    role: Optional[BoardRole] = None
    image_seed: Optional[str] = Field(None, min_length=1, max_length=200)
    order: Optional[int] = Field(None, ge=0)

    @field_validator("name", "qualifications", "affiliation", "country", "image_seed", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)
