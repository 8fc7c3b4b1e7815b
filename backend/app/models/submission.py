from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

_ORCID_RE = re.compile(r"^\d{4}-\d{4}-\d{4}-\d{3}[\dX]$")


class SubmissionStatus(str, Enum):
    """
    稿件状态枚举（submissions.status）

    中文注释:
    - 数据库存储 snake_case，前端展示用 label。
    - accepted / rejected 为终态：终态后不再允许分配审稿人或再次做决定。
    """

    SUBMITTED = "submitted"
    UNDER_INITIAL_REVIEW = "under_initial_review"
    UNDER_PEER_REVIEW = "under_peer_review"
    MINOR_REVISION = "minor_revision"
    MAJOR_REVISION = "major_revision"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    UPLOADING = "uploading"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @classmethod
    def final_states(cls) -> set[str]:
        return {cls.ACCEPTED.value, cls.REJECTED.value}

    @classmethod
    def decision_states(cls) -> set[str]:
        return {
            cls.ACCEPTED.value,
            cls.MINOR_REVISION.value,
            cls.MAJOR_REVISION.value,
            cls.REJECTED.value,
        }

    @classmethod
    def import_states(cls) -> set[str]:
        return {s.value for s in cls if s is not cls.UPLOADING}


_STATUS_LABELS = {
    SubmissionStatus.SUBMITTED: "Submitted",
    SubmissionStatus.UNDER_INITIAL_REVIEW: "Under Initial Review",
    SubmissionStatus.UNDER_PEER_REVIEW: "Under Peer Review",
    SubmissionStatus.MINOR_REVISION: "Minor Revision",
    SubmissionStatus.MAJOR_REVISION: "Major Revision",
    SubmissionStatus.ACCEPTED: "Accepted",
    SubmissionStatus.REJECTED: "Rejected",
    SubmissionStatus.UPLOADING: "Uploading",
}


def normalize_status(value: str | None) -> str | None:
    if value is None:
        return None
    v = str(value).strip().lower()
    if not v:
        return None
    # 兼容展示文案 / 旧数据（"Under Peer Review"、"Revisions Required" 等）
    v = re.sub(r"[\s\-]+", "_", v)
    legacy_map = {
        "revisions_required": SubmissionStatus.MAJOR_REVISION.value,
        "in_review": SubmissionStatus.UNDER_PEER_REVIEW.value,
        "under_review": SubmissionStatus.UNDER_PEER_REVIEW.value,
        "accept": SubmissionStatus.ACCEPTED.value,
        "reject": SubmissionStatus.REJECTED.value,
    }
    v = legacy_map.get(v, v)

    try:
        return SubmissionStatus(v).value
    except ValueError:
        return None


def status_label(value: str | None) -> str:
    normalized = normalize_status(value)
    if normalized is None:
        return str(value or "")
    return SubmissionStatus(normalized).label


class ReviewAssignmentStatus(str, Enum):
    PENDING = "pending"
    REVIEW_SUBMITTED = "review_submitted"


class Contributor(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    institution: str = Field(..., min_length=1, max_length=300)
    orcid: Optional[str] = None
    role: str = "Author"
    is_primary_contact: bool = False

    @field_validator("name", "institution", mode="before")
    @classmethod
    def strip_required_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("orcid", mode="before")
    @classmethod
    def validate_orcid(cls, v):
        """
        ORCID 可留空；填写时必须符合 0000-0000-0000-000X。
        """
        if v is None:
            return None
        text = str(v).strip()
        if not text:
            return None
        if not _ORCID_RE.match(text):
            raise ValueError("Invalid ORCID iD format. Expected: 0000-0000-0000-0000")
        return text


class SubmissionBase(BaseModel):
    title: str = Field(..., min_length=10, max_length=500)
    abstract: str = Field(..., min_length=50)
    keywords: str = Field(..., min_length=3, max_length=500)
    manuscript_url: str = Field(..., min_length=1)
    contributors: List[Contributor] = Field(..., min_length=1)

    @field_validator("title", "abstract", "keywords", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("manuscript_url")
    @classmethod
    def validate_manuscript_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Manuscript file is required")
        return v

    @model_validator(mode="after")
    def exactly_one_primary_contact(self):
        primary = [c for c in self.contributors if c.is_primary_contact]
        if len(primary) != 1:
            raise ValueError("Exactly one contributor must be marked as the primary contact")
        return self

    @property
    def primary_contact(self) -> Contributor:
        return next(c for c in self.contributors if c.is_primary_contact)


class SubmissionCreate(SubmissionBase):
    pass


class SubmissionImport(SubmissionBase):
    """
    管理员导入历史稿件：可指定当前状态与原始投稿日期
    """

    status: SubmissionStatus = SubmissionStatus.SUBMITTED
    original_submission_date: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_import_status(cls, v):
        normalized = normalize_status(v) if isinstance(v, str) else v
        if normalized and normalized not in SubmissionStatus.import_states():
            raise ValueError("Imported submissions cannot be in the uploading state")
        return normalized or v


class ReviewerAssignRequest(BaseModel):
    reviewer_id: str = Field(..., min_length=1)


class DecisionRequest(BaseModel):
    status: SubmissionStatus

    @field_validator("status", mode="before")
    @classmethod
    def normalize_decision(cls, v):
        normalized = normalize_status(v) if isinstance(v, str) else v
        if normalized not in SubmissionStatus.decision_states():
            raise ValueError("Decision must be one of: Accepted, Minor Revision, Major Revision, Rejected")
        return normalized
