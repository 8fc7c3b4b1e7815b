from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from app.models.submission import status_label
from app.services.supabase_helpers import extract_rows, first_row, utc_now_iso


class SubmissionEvent(str, Enum):
    SUBMISSION_CREATED = "SUBMISSION_CREATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    REVIEWER_ASSIGNED = "REVIEWER_ASSIGNED"
    REVIEW_SUBMITTED = "REVIEW_SUBMITTED"


def build_history_entry(event_type: str, context: Optional[dict] = None) -> tuple[str, str]:
    """
    把事件类型 + 上下文渲染为 (message, icon)。

    中文注释:
    - icon 为前端图标名（lucide），后端只负责给出稳定字符串。
    - 未知事件不报错，统一渲染为 "An unknown event occurred."
    """
    ctx = context or {}
    if event_type == SubmissionEvent.SUBMISSION_CREATED.value:
        return f"Initial submission received from {ctx.get('author_name') or 'the author'}.", "BookCopy"
    if event_type == SubmissionEvent.STATUS_CHANGED.value:
        actor = ctx.get("actor_name")
        suffix = f" by {actor}" if actor else ""
        return f"Status updated to '{status_label(ctx.get('status'))}'{suffix}.", "Edit"
    if event_type == SubmissionEvent.REVIEWER_ASSIGNED.value:
        return f"Reviewer assigned: {ctx.get('reviewer_name') or 'N/A'}.", "UserCheck"
    if event_type == SubmissionEvent.REVIEW_SUBMITTED.value:
        return f"Review submitted by {ctx.get('reviewer_name') or 'a reviewer'}.", "MessageSquare"
    return "An unknown event occurred.", "FileEdit"


@dataclass
class HistoryService:
    supabase_admin: Any

    def log_submission_event(
        self,
        *,
        submission_id: str,
        event_type: str,
        context: Optional[dict] = None,
    ) -> Optional[dict]:
        message, icon = build_history_entry(event_type, context)
        payload = {
            "submission_id": submission_id,
            "event_type": event_type,
            "message": message,
            "icon": icon,
            "created_at": utc_now_iso(),
        }
        try:
            resp = self.supabase_admin.table("submission_history").insert(payload).execute()
            return first_row(resp) or payload
        except Exception as e:
            # 中文注释: 历史记录属于旁路写入，失败不得阻断主流程
            print(f"[History] log failed submission={submission_id} event={event_type}: {e}")
            return None

    def list_history(self, submission_id: str) -> list[dict]:
        resp = (
            self.supabase_admin.table("submission_history")
            .select("id,submission_id,event_type,message,icon,created_at")
            .eq("submission_id", submission_id)
            .order("created_at", desc=True)
            .execute()
        )
        return extract_rows(resp)
