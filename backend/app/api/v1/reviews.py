from fastapi import APIRouter, Depends

from app.core.roles import get_current_profile
from app.lib.api_client import supabase_admin
from app.schemas.review import ReviewSubmit
from app.services.review_service import ReviewService

router = APIRouter(prefix="/submissions", tags=["Reviews"])


def _service() -> ReviewService:
    return ReviewService(supabase_admin)


@router.post("/{submission_id}/reviews", status_code=201)
async def submit_review(
    submission_id: str,
    payload: ReviewSubmit,
    profile: dict = Depends(get_current_profile),
):
    created = _service().submit_review(submission_id=submission_id, reviewer=profile, payload=payload)
    return {"success": True, "data": created}


@router.get("/{submission_id}/reviews")
async def list_reviews(
    submission_id: str,
    profile: dict = Depends(get_current_profile),
):
    """
    评审意见列表（按提交时间倒序）

    中文注释:
    - 编辑：全部字段。
    - 作者：隐藏 comments_for_editor（保密意见）。
    - 审稿人：只看自己的评审。
    """
    svc = _service()
    submission = svc.submissions.get_submission(submission_id)
    view = svc.submissions.ensure_can_view(submission, profile)
    if view == "editor":
        rows = svc.list_reviews(submission_id)
    elif view == "author":
        rows = svc.list_reviews(submission_id, hide_confidential=True)
    else:
        rows = svc.list_reviews(submission_id, reviewer_id=profile["id"])
    return {"success": True, "data": rows}
