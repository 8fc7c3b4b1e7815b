from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth_utils import get_current_user
from app.lib.api_client import supabase_admin
from app.services.notification_service import NotificationService

router = APIRouter(tags=["Notifications"])


def _service() -> NotificationService:
    return NotificationService(supabase_admin)


@router.get("/notifications")
async def list_notifications(
    limit: int = Query(10, ge=1, le=50),
    current_user: dict = Depends(get_current_user),
):
    """
    当前用户最近的通知 + 未读数（RLS 生效）
    """
    svc = _service()
    token, user_id = current_user["access_token"], current_user["id"]
    rows = svc.list_for_current_user(access_token=token, user_id=user_id, limit=limit)
    unread = svc.unread_count(access_token=token, user_id=user_id)
    return {"success": True, "data": {"items": rows, "unread_count": unread}}


@router.patch("/notifications/{id}/read")
async def mark_notification_read(
    id: str,
    current_user: dict = Depends(get_current_user),
):
    """
    将通知标记为已读（仅允许更新自己的记录）
    """
    updated = _service().mark_read(
        access_token=current_user["access_token"], user_id=current_user["id"], notification_id=id
    )
    if updated is None:
        # 中文注释: 可能是不存在或不属于当前用户
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True, "data": updated}


@router.post("/notifications/read-all")
async def mark_all_notifications_read(current_user: dict = Depends(get_current_user)):
    count = _service().mark_all_read(access_token=current_user["access_token"], user_id=current_user["id"])
    return {"success": True, "data": {"updated": count}}
