from typing import Optional

from fastapi import APIRouter, Depends

from app.core.roles import get_current_profile, require_any_role
from app.lib.api_client import supabase_admin
from app.models.submission import DecisionRequest, ReviewerAssignRequest, SubmissionCreate, SubmissionImport
from app.models.user import EDITOR_ROLES, UserRole
from app.services.history_service import HistoryService
from app.services.submission_service import SubmissionService

router = APIRouter(prefix="/submissions", tags=["Submissions"])


def _service() -> SubmissionService:
    return SubmissionService(supabase_admin)


def _history() -> HistoryService:
    return HistoryService(supabase_admin)


@router.post("", status_code=201)
async def create_submission(
    payload: SubmissionCreate,
    profile: dict = Depends(get_current_profile),
):
    """
    作者投稿（稿件文件需先通过 /uploads/document 上传，得到 manuscript_url）。

    中文注释:
    - 必须且只能有一位 primary contact（schema 层校验，422）。
    - 作者信息取 primary contact 的姓名/邮箱，author_id 为当前登录用户。
    """
    created = _service().create_submission(profile=profile, payload=payload)
    return {"success": True, "data": created}


@router.post("/import", status_code=201)
async def import_submission(
    payload: SubmissionImport,
    _profile: dict = Depends(require_any_role([UserRole.ADMIN.value])),
):
    """
    管理员导入历史稿件（可指定状态与原始投稿日期）
    """
    created = _service().import_submission(payload=payload)
    return {"success": True, "data": created}


@router.get("")
async def list_submissions(
    search: Optional[str] = None,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    return {"success": True, "data": _service().list_submissions(search)}


@router.get("/mine")
async def list_my_submissions(profile: dict = Depends(get_current_profile)):
    return {"success": True, "data": _service().list_for_author(profile["id"])}


@router.get("/assigned")
async def list_assigned_submissions(profile: dict = Depends(get_current_profile)):
    """
    审稿人仪表盘：分配给我的稿件（含 has_reviewed）
    """
    return {"success": True, "data": _service().list_for_reviewer(profile["id"])}


@router.get("/{submission_id}")
async def get_submission(
    submission_id: str,
    profile: dict = Depends(get_current_profile),
):
    svc = _service()
    submission = svc.get_submission(submission_id)
    view = svc.ensure_can_view(submission, profile)
    return {"success": True, "data": {**submission, "viewer_role": view}}


@router.get("/{submission_id}/history")
async def get_submission_history(
    submission_id: str,
    profile: dict = Depends(get_current_profile),
):
    svc = _service()
    svc.ensure_can_view(svc.get_submission(submission_id), profile)
    return {"success": True, "data": _history().list_history(submission_id)}


@router.post("/{submission_id}/reviewers")
async def assign_reviewer(
    submission_id: str,
    payload: ReviewerAssignRequest,
    profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    updated = _service().assign_reviewer(
        submission_id=submission_id, reviewer_id=payload.reviewer_id, actor=profile
    )
    return {"success": True, "data": updated}


@router.post("/{submission_id}/decision")
async def make_decision(
    submission_id: str,
    payload: DecisionRequest,
    profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    """
    编辑决定：Accepted / Minor Revision / Major Revision / Rejected
    """
    updated = _service().make_decision(submission_id=submission_id, status=payload.status.value, actor=profile)
    return {"success": True, "data": updated}
