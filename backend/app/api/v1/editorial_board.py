from fastapi import APIRouter, Depends

from app.core.roles import require_any_role
from app.core.short_ttl_cache import public_cache
from app.lib.api_client import supabase_admin
from app.models.editorial_board import BoardMemberCreate, BoardMemberUpdate
from app.models.user import EDITOR_ROLES
from app.services.editorial_board_service import EditorialBoardService

router = APIRouter(prefix="/editorial-board", tags=["Editorial Board"])


def _service() -> EditorialBoardService:
    return EditorialBoardService(supabase_admin)


@router.get("")
async def list_members(_profile: dict = Depends(require_any_role(EDITOR_ROLES))):
    return {"success": True, "data": _service().list_members()}


@router.post("", status_code=201)
async def create_member(
    payload: BoardMemberCreate,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    created = _service().create_member(payload)
    public_cache.invalidate("board")
    return {"success": True, "data": created}


@router.patch("/{member_id}")
async def update_member(
    member_id: str,
    payload: BoardMemberUpdate,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    patch = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    updated = _service().update_member(member_id, patch)
    public_cache.invalidate("board")
    return {"success": True, "data": updated}


@router.delete("/{member_id}")
async def delete_member(
    member_id: str,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    _service().delete_member(member_id)
    public_cache.invalidate("board")
    return {"success": True, "data": {"id": member_id}}
