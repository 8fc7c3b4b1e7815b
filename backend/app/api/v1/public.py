import time
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from app.core.config import SiteConfig
from app.core.short_ttl_cache import public_cache
from app.lib.api_client import supabase_admin
from app.models.settings import BRANDING_KEY, JOURNAL_INFO_KEY
from app.services.editorial_board_service import EditorialBoardService
from app.services.publication_service import PublicationService
from app.services.settings_service import SettingsService
from app.services.sitemap_service import build_sitemap

router = APIRouter(prefix="/public", tags=["Public Resources"])
sitemap_router = APIRouter(tags=["Public Resources"])


def _publications() -> PublicationService:
    return PublicationService(supabase_admin)


def _board() -> EditorialBoardService:
    return EditorialBoardService(supabase_admin)


def _settings() -> SettingsService:
    return SettingsService(supabase_admin)


def _ttl() -> float:
    return SiteConfig.from_env().public_cache_ttl_sec


@router.get("/latest-issue")
async def get_latest_issue():
    """
    首页“最新一期”；没有任何期时 data 为 null
    """
    cached = public_cache.get("latest_issue")
    if cached is not None:
        return {"success": True, "data": cached or None}
    issue = _publications().get_latest_issue()
    # 中文注释: 空结果也缓存（用 {} 占位），避免首页反复打数据库
    public_cache.set("latest_issue", issue or {}, ttl_sec=_ttl())
    return {"success": True, "data": issue}


@router.get("/archive")
async def get_archive():
    volumes = public_cache.get_or_set("archive", _publications().list_volumes, ttl_sec=_ttl())
    return {"success": True, "data": volumes}


@router.get("/editorial-board")
async def get_editorial_board():
    sections = public_cache.get_or_set("board", _board().grouped_members, ttl_sec=_ttl())
    return {"success": True, "data": sections}


@router.get("/journal-info")
async def get_journal_info():
    info = public_cache.get_or_set(JOURNAL_INFO_KEY, lambda: _settings().get(JOURNAL_INFO_KEY), ttl_sec=_ttl())
    return {"success": True, "data": info}


@router.get("/branding")
async def get_branding():
    branding = public_cache.get_or_set(BRANDING_KEY, lambda: _settings().get(BRANDING_KEY), ttl_sec=_ttl())
    return {"success": True, "data": branding}


@router.get("/revalidate")
async def revalidate(path: Optional[str] = None):
    """
    清空公开页面缓存（部署钩子 / 编辑保存后调用）
    """
    now_ms = int(time.time() * 1000)
    if not path:
        return {"revalidated": False, "now": now_ms, "message": "Missing path to revalidate"}
    try:
        cleared = public_cache.invalidate()
    except Exception as e:
        return JSONResponse(status_code=500, content={"revalidated": False, "error": str(e)})
    print(f"[Public] revalidate path={path} cleared={cleared}")
    return {"revalidated": True, "now": now_ms}


@sitemap_router.get("/sitemap.xml")
async def sitemap():
    try:
        volumes = _publications().list_volumes()
    except Exception as e:
        # 中文注释: 数据库不可用时仍输出静态页面
        print(f"[Public] sitemap volumes unavailable: {e}")
        volumes = []
    xml = build_sitemap(SiteConfig.from_env().base_url, volumes)
    return Response(content=xml, media_type="application/xml")
