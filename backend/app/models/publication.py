from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class VolumeCreate(BaseModel):
    # 中文注释: 未填写标题时由服务层生成 "Volume {n+1}, {year}"
    title: Optional[str] = Field(None, max_length=200)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v


class IssueCreate(BaseModel):
    # 中文注释: 空标题由服务层返回 400
    title: str = Field("", max_length=200)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class ArticleAssign(BaseModel):
    submission_id: str = Field(..., min_length=1)
