from fastapi import APIRouter, Depends

from app.core.roles import require_any_role
from app.core.short_ttl_cache import public_cache
from app.lib.api_client import supabase_admin
from app.models.publication import ArticleAssign, IssueCreate, VolumeCreate
from app.models.user import EDITOR_ROLES
from app.services.publication_service import PublicationService

router = APIRouter(prefix="/publications", tags=["Publications"])


def _service() -> PublicationService:
    return PublicationService(supabase_admin)


@router.get("/volumes")
async def list_volumes(_profile: dict = Depends(require_any_role(EDITOR_ROLES))):
    return {"success": True, "data": _service().list_volumes()}


@router.post("/volumes", status_code=201)
async def create_volume(
    payload: VolumeCreate,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    created = _service().create_volume(payload.title)
    public_cache.invalidate()
    return {"success": True, "data": created}


@router.post("/volumes/{volume_id}/issues", status_code=201)
async def add_issue(
    volume_id: str,
    payload: IssueCreate,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    created = _service().add_issue(volume_id=volume_id, title=payload.title)
    public_cache.invalidate()
    return {"success": True, "data": created}


@router.get("/unassigned")
async def list_unassigned(_profile: dict = Depends(require_any_role(EDITOR_ROLES))):
    """
    已接收但尚未编入任何一期的稿件
    """
    return {"success": True, "data": _service().list_unassigned_accepted()}


@router.post("/volumes/{volume_id}/issues/{issue_id}/articles")
async def assign_article(
    volume_id: str,
    issue_id: str,
    payload: ArticleAssign,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    issue = _service().assign_article(volume_id=volume_id, issue_id=issue_id, submission_id=payload.submission_id)
    public_cache.invalidate()
    return {"success": True, "data": issue}
