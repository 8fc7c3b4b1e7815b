from typing import Optional

from fastapi import APIRouter, Depends

from app.core.auth_utils import get_current_user
from app.core.roles import require_any_role
from app.core.short_ttl_cache import public_cache
from app.lib.api_client import supabase_admin
from app.models.user import EDITOR_ROLES, UserRole
from app.schemas.user import ProfileUpdate, RoleUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def _service() -> UserService:
    return UserService(supabase_admin)


@router.patch("/me")
async def update_my_profile(
    payload: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
):
    """
    更新自己的显示名 / 专业方向；同步关联的编委条目。
    """
    updated = _service().update_own_profile(user=current_user, update=payload)
    public_cache.invalidate("board")
    return {"success": True, "data": updated}


@router.get("")
async def list_directory(
    search: Optional[str] = None,
    profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    """
    用户目录（admin 全量；editor 仅审稿人/编辑/管理员）
    """
    rows = _service().list_directory(viewer=profile, search=search)
    return {"success": True, "data": rows}


@router.get("/reviewers")
async def list_reviewers(_profile: dict = Depends(require_any_role(EDITOR_ROLES))):
    return {"success": True, "data": _service().list_reviewers()}


@router.get("/{user_id}")
async def get_user_detail(
    user_id: str,
    _profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    """
    用户详情 + 已完成的评审记录
    """
    svc = _service()
    user = svc.get_user(user_id)
    return {"success": True, "data": {**user, "review_history": svc.review_history(user_id)}}


@router.patch("/{user_id}/role")
async def update_user_role(
    user_id: str,
    payload: RoleUpdate,
    _profile: dict = Depends(require_any_role([UserRole.ADMIN.value])),
):
    updated = _service().update_role(user_id=user_id, role=payload.role.value)
    return {"success": True, "data": updated}
