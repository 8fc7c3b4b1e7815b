from fastapi import APIRouter, Depends

from app.core.roles import require_any_role
from app.lib.api_client import supabase_admin
from app.models.user import EDITOR_ROLES
from app.services.submission_service import SubmissionService

router = APIRouter(prefix="/stats", tags=["Dashboard Statistics"])


def _service() -> SubmissionService:
    return SubmissionService(supabase_admin)


@router.get("/editor")
async def get_editor_overview(_profile: dict = Depends(require_any_role(EDITOR_ROLES))):
    """
    编辑仪表盘：待分配 / 审稿中 / 待作者修改 计数 + 进行中稿件
    """
    return {"success": True, "data": _service().editor_overview()}


@router.get("/submissions/monthly")
async def get_monthly_submissions(_profile: dict = Depends(require_any_role(EDITOR_ROLES))):
    """
    近 6 个月投稿量（按自然月，正序）
    """
    return {"success": True, "data": _service().monthly_submission_counts()}
