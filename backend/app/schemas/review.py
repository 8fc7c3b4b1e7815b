from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ReviewRecommendation(str, Enum):
    ACCEPT = "Accept"
    MINOR_REVISION = "Minor Revision"
    MAJOR_REVISION = "Major Revision"
    REJECT = "Reject"


class ReviewSubmit(BaseModel):
    recommendation: ReviewRecommendation
    # 中文注释: 仅编辑可见（作者视图会剔除）
    comments_for_editor: Optional[str] = Field(None, max_length=20000)
    comments_for_author: Optional[str] = Field(None, max_length=20000)

    @field_validator("comments_for_editor", "comments_for_author", mode="before")
    @classmethod
    def strip_comments(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v
