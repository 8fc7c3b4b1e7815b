from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ReviewerCandidate(BaseModel):
    id: str
    name: str
    specialization: Optional[str] = None


class SuggestedReviewer(BaseModel):
    id: str = Field(..., description="The ID of the suggested reviewer.")
    name: str = Field(..., description="The name of the suggested reviewer.")
    reason: str = Field(..., description="A brief explanation for why this reviewer is a good match.")


class ManuscriptScreening(BaseModel):
    suggested_reviewers: List[SuggestedReviewer] = Field(
        default_factory=list,
        description="A list of 2-3 suggested reviewers from the provided list.",
    )
    recommendation: str = Field(
        ...,
        description=(
            "A brief recommendation (2-3 sentences) on whether the manuscript is a good fit "
            "for the journal, based on its abstract and keywords."
        ),
    )


class AbstractScreening(BaseModel):
    originality_score: str = Field(
        ...,
        description="An estimated originality score as a percentage string, e.g. '8% Match'. Lower is better.",
    )
    novelty_summary: str = Field(
        ...,
        description="A very brief, one-sentence summary of the manuscript's potential novelty.",
    )


class ManuscriptScreeningRequest(BaseModel):
    abstract: str = Field(..., min_length=50)
    keywords: Optional[str] = None
    # 中文注释: 不传时由服务端从 user_profiles 读取全部 reviewer
    reviewers: Optional[List[ReviewerCandidate]] = None


class AbstractScreeningRequest(BaseModel):
    abstract: str = Field(..., min_length=1)
