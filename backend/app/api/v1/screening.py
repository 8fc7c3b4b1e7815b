import asyncio

from fastapi import APIRouter, Depends

from app.core.config import ScreeningConfig
from app.core.roles import require_any_role
from app.lib.api_client import supabase_admin
from app.models.screening import AbstractScreeningRequest, ManuscriptScreeningRequest, ReviewerCandidate
from app.models.user import EDITOR_ROLES
from app.services.screening_service import ScreeningService
from app.services.submission_service import SubmissionService
from app.services.user_service import UserService

router = APIRouter(prefix="/screening", tags=["AI Screening"])


def _service() -> ScreeningService:
    return ScreeningService(ScreeningConfig.from_env())


def _reviewer_candidates(exclude: set[str] | None = None) -> list[ReviewerCandidate]:
    rows = UserService(supabase_admin).list_reviewers()
    return [
        ReviewerCandidate(
            id=r["id"],
            name=r.get("display_name") or r.get("email") or "Reviewer",
            specialization=r.get("specialization"),
        )
        for r in rows
        if r.get("id") and r["id"] not in (exclude or set())
    ]


@router.post("/manuscript")
async def screen_manuscript(
    payload: ManuscriptScreeningRequest,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    reviewers = payload.reviewers if payload.reviewers is not None else _reviewer_candidates()
    # 中文注释: 模型调用是同步阻塞的，放到线程池避免卡住事件循环
    result = await asyncio.to_thread(
        _service().screen_manuscript,
        abstract=payload.abstract,
        keywords=payload.keywords,
        reviewers=reviewers,
    )
    return {"success": True, "data": result.model_dump()}


@router.post("/abstract")
async def screen_abstract(
    payload: AbstractScreeningRequest,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    result = await asyncio.to_thread(_service().screen_abstract, abstract=payload.abstract)
    return {"success": True, "data": result.model_dump()}


@router.post("/submissions/{submission_id}")
async def screen_submission(
    submission_id: str,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    """
    针对已有稿件：推荐审稿人（排除作者与已分配审稿人）+ 摘要新颖性
    """
    submission = SubmissionService(supabase_admin).get_submission(submission_id)
    exclude = {submission.get("author_id"), *(submission.get("reviewer_ids") or [])}
    reviewers = _reviewer_candidates(exclude)
    svc = _service()
    manuscript = await asyncio.to_thread(
        svc.screen_manuscript,
        abstract=submission.get("abstract") or "",
        keywords=submission.get("keywords"),
        reviewers=reviewers,
    )
    abstract = await asyncio.to_thread(svc.screen_abstract, abstract=submission.get("abstract") or "")
    return {"success": True, "data": {**manuscript.model_dump(), **abstract.model_dump()}}
