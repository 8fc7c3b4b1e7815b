from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from postgrest.exceptions import APIError

from app.lib.api_client import create_user_supabase_client
from app.models.submission import status_label
from app.services.supabase_helpers import execute_or_deny, extract_rows, first_row, utc_now_iso

TITLE_PREVIEW_LENGTH = 30


def _short_title(title: Optional[str]) -> str:
    text = (title or "").strip()
    if len(text) > TITLE_PREVIEW_LENGTH:
        return f"{text[:TITLE_PREVIEW_LENGTH]}..."
    return text


def build_notification(event_type: str, context: Optional[dict] = None) -> tuple[str, str]:
    """
    通知文案模板 -> (message, icon)

    中文注释: 标题截断为 30 字符 + "..."，避免通知下拉框撑爆。
    """
    ctx = context or {}
    title = _short_title(ctx.get("submission_title"))
    if event_type == "STATUS_CHANGED":
        return f"The status for '{title}' has been updated to '{status_label(ctx.get('status'))}'.", "Edit"
    if event_type == "REVIEW_SUBMITTED":
        return f"A new review was submitted for your manuscript '{title}'.", "MessageSquare"
    if event_type == "NEW_SUBMISSION":
        return f"A new manuscript, '{title}', was submitted by {ctx.get('author_name') or 'an author'}.", "BookCopy"
    if event_type == "REVIEWER_ASSIGNED":
        return f"You have been assigned to review the manuscript '{title}'.", "UserCheck"
    return "You have a new update.", "Bell"


@dataclass
class NotificationService:
    """
    通知服务：封装 notifications 表的读写

    中文注释:
    1) 写入使用 supabase_admin（service_role），避免 RLS 导致写入失败。
    2) 用户读取/更新使用“用户态 client”（注入 JWT），确保 RLS 生效，防止越权。
    """

    supabase_admin: Any
    user_client_factory: Callable[[str], Any] = create_user_supabase_client

    @staticmethod
    def _normalize_action_url(action_url: Optional[str]) -> Optional[str]:
        raw = str(action_url or "").strip()
        if not raw:
            return None
        if raw.startswith("/"):
            return raw
        parsed = urlparse(raw)
        if parsed.scheme not in {"http", "https"}:
            return None
        path = parsed.path or "/"
        query = f"?{parsed.query}" if parsed.query else ""
        return f"{path}{query}"

    def generate_notification(
        self,
        *,
        user_id: str,
        submission_id: Optional[str],
        event_type: str,
        context: Optional[dict] = None,
        action_url: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        if not user_id:
            return None
        message, icon = build_notification(event_type, context)
        if not action_url and submission_id:
            action_url = f"/dashboard/submissions/{submission_id}"

        payload = {
            "user_id": user_id,
            "submission_id": submission_id,
            "event_type": event_type,
            "message": message,
            "icon": icon,
            "action_url": self._normalize_action_url(action_url) or "/dashboard",
            "is_read": False,
            "created_at": utc_now_iso(),
        }
        try:
            res = self.supabase_admin.table("notifications").insert(payload).execute()
            return first_row(res)
        except APIError as e:
            # 中文注释:
            # - 导入的历史稿件 / 演示用户可能不对应 auth.users，写通知会触发外键 23503。
            # - 该情况对主流程无影响，静默忽略。
            text = str(e).lower()
            code = str(getattr(e, "code", "") or "").lower()
            if "23503" in code or "23503" in text:
                return None
            print(f"[Notifications] create failed: {e}")
            return None
        except Exception as e:
            print(f"[Notifications] create failed: {e}")
            return None

    def notify_many(
        self,
        *,
        user_ids: List[str],
        submission_id: Optional[str],
        event_type: str,
        context: Optional[dict] = None,
    ) -> int:
        sent = 0
        for uid in dict.fromkeys(u for u in user_ids if u):
            if self.generate_notification(
                user_id=uid, submission_id=submission_id, event_type=event_type, context=context
            ):
                sent += 1
        return sent

    def list_for_current_user(self, *, access_token: str, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        client = self.user_client_factory(access_token)
        res = execute_or_deny(
            client.table("notifications")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit),
            path="notifications",
            operation="list",
        )
        return extract_rows(res)

    def unread_count(self, *, access_token: str, user_id: str) -> int:
        client = self.user_client_factory(access_token)
        res = execute_or_deny(
            client.table("notifications").select("id").eq("user_id", user_id).eq("is_read", False),
            path="notifications",
            operation="list",
        )
        return len(extract_rows(res))

    def mark_read(self, *, access_token: str, user_id: str, notification_id: str) -> Optional[Dict[str, Any]]:
        client = self.user_client_factory(access_token)
        res = execute_or_deny(
            client.table("notifications")
            .update({"is_read": True})
            .eq("id", notification_id)
            .eq("user_id", user_id),
            path=f"notifications/{notification_id}",
            operation="update",
            data={"is_read": True},
        )
        return first_row(res)

    def mark_all_read(self, *, access_token: str, user_id: str) -> int:
        client = self.user_client_factory(access_token)
        res = execute_or_deny(
            client.table("notifications")
            .update({"is_read": True})
            .eq("user_id", user_id)
            .eq("is_read", False),
            path="notifications",
            operation="update",
            data={"is_read": True},
        )
        return len(extract_rows(res))
