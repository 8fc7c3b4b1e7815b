from fastapi import APIRouter, Depends, HTTPException

from app.core.roles import get_current_profile, require_any_role
from app.core.short_ttl_cache import public_cache
from app.lib.api_client import supabase_admin
from app.models.settings import BRANDING_KEY, JOURNAL_INFO_KEY, BrandingUpdate, JournalInfoUpdate
from app.models.user import EDITOR_ROLES
from app.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["Journal Settings"])


def _service() -> SettingsService:
    return SettingsService(supabase_admin)


@router.get("/journal-info")
async def get_journal_info(_profile: dict = Depends(get_current_profile)):
    """
    投稿说明（cover letter）+ 投稿模板 URL；作者投稿页也需要读取。
    """
    return {"success": True, "data": _service().get(JOURNAL_INFO_KEY)}


@router.put("/journal-info")
async def update_journal_info(
    payload: JournalInfoUpdate,
    profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    patch = payload.model_dump(exclude_unset=True)
    if not patch:
        raise HTTPException(status_code=400, detail="No fields to update")
    saved = _service().update(JOURNAL_INFO_KEY, patch, updated_by=profile["id"])
    public_cache.invalidate(JOURNAL_INFO_KEY)
    return {"success": True, "data": saved}


@router.get("/branding")
async def get_branding(_profile: dict = Depends(get_current_profile)):
    return {"success": True, "data": _service().get(BRANDING_KEY)}


@router.put("/branding")
async def update_branding(
    payload: BrandingUpdate,
    profile: dict = Depends(require_any_role(EDITOR_ROLES)),
):
    patch = payload.model_dump(exclude_unset=True)
    if not patch:
        raise HTTPException(status_code=400, detail="No fields to update")
    saved = _service().update(BRANDING_KEY, patch, updated_by=profile["id"])
    public_cache.invalidate(BRANDING_KEY)
    return {"success": True, "data": saved}
