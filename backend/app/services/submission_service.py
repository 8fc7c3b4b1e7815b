from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import HTTPException

from app.models.submission import (
    ReviewAssignmentStatus,
    SubmissionCreate,
    SubmissionImport,
    SubmissionStatus,
    normalize_status,
)
from app.models.user import DIRECTORY_ROLES_FOR_EDITOR, EDITOR_ROLES, is_editor_role
from app.services.history_service import HistoryService, SubmissionEvent
from app.services.notification_service import NotificationService
from app.services.supabase_helpers import (
    extract_rows,
    first_row,
    is_unique_violation,
    utc_now,
    utc_now_iso,
)

_MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_IN_PROGRESS = {
    SubmissionStatus.UNDER_INITIAL_REVIEW.value,
    SubmissionStatus.UNDER_PEER_REVIEW.value,
}
_AWAITING_AUTHOR = {
    SubmissionStatus.MINOR_REVISION.value,
    SubmissionStatus.MAJOR_REVISION.value,
}


def _parse_ts(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def actor_name(profile: dict) -> str:
    return str(profile.get("display_name") or profile.get("email") or "an editor")


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def last_month_starts(now: datetime, count: int = 6) -> list[datetime]:
    """
    返回最近 count 个自然月的月初（含当月），按时间正序。
    """
    starts: list[datetime] = []
    year, month = now.year, now.month
    for _ in range(count):
        starts.append(_month_start(year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(starts))


@dataclass
class SubmissionService:
    """
    投稿生命周期：投稿 / 导入 / 分配审稿人 / 编辑决定 / 仪表盘数据

    中文注释:
    - 所有写入使用 service_role client，角色与归属在应用层校验。
    - 历史记录与通知属于旁路写入，失败只记日志，不阻断主流程。
    """

    supabase_admin: Any
    history: Optional[HistoryService] = field(default=None)
    notifications: Optional[NotificationService] = field(default=None)

    def __post_init__(self) -> None:
        if self.history is None:
            self.history = HistoryService(self.supabase_admin)
        if self.notifications is None:
            self.notifications = NotificationService(self.supabase_admin)

    # ---------- 读取 ----------

    def _attach_reviewers(self, rows: list[dict]) -> list[dict]:
        if not rows:
            return rows
        ids = [r["id"] for r in rows if r.get("id")]
        resp = (
            self.supabase_admin.table("review_assignments")
            .select("id,submission_id,reviewer_id,reviewer_name,status,assigned_at")
            .in_("submission_id", ids)
            .execute()
        )
        by_submission: dict[str, list[dict]] = {}
        for a in extract_rows(resp):
            by_submission.setdefault(a.get("submission_id"), []).append(a)

        for row in rows:
            assignments = sorted(
                by_submission.get(row.get("id"), []), key=lambda a: str(a.get("assigned_at") or "")
            )
            row["reviewers"] = [
                {"id": a.get("reviewer_id"), "name": a.get("reviewer_name"), "status": a.get("status")}
                for a in assignments
            ]
            row["reviewer_ids"] = [a.get("reviewer_id") for a in assignments]
            row["status"] = normalize_status(row.get("status")) or row.get("status")
        return rows

    def get_submission(self, submission_id: str) -> dict:
        resp = (
            self.supabase_admin.table("submissions")
            .select("*")
            .eq("id", submission_id)
            .limit(1)
            .execute()
        )
        row = first_row(resp)
        if not row:
            raise HTTPException(status_code=404, detail="Submission not found")
        return self._attach_reviewers([row])[0]

    @staticmethod
    def ensure_can_view(submission: dict, profile: dict) -> str:
        """
        返回访问视角：editor / author / reviewer；无权访问时 403。
        """
        if is_editor_role(profile.get("role")):
            return "editor"
        if submission.get("author_id") == profile.get("id"):
            return "author"
        if profile.get("id") in (submission.get("reviewer_ids") or []):
            return "reviewer"
        raise HTTPException(status_code=403, detail="You do not have access to this submission")

    def list_submissions(self, search: Optional[str] = None) -> list[dict]:
        resp = (
            self.supabase_admin.table("submissions")
            .select("*")
            .order("submitted_at", desc=True)
            .execute()
        )
        rows = extract_rows(resp)
        term = (search or "").strip().lower()
        if term:
            rows = [
                r
                for r in rows
                if term in str(r.get("title") or "").lower() or term in str(r.get("author_name") or "").lower()
            ]
        return self._attach_reviewers(rows)

    def list_for_author(self, author_id: str) -> list[dict]:
        resp = (
            self.supabase_admin.table("submissions")
            .select("*")
            .eq("author_id", author_id)
            .order("submitted_at", desc=True)
            .execute()
        )
        return self._attach_reviewers(extract_rows(resp))

    def list_for_reviewer(self, reviewer_id: str) -> list[dict]:
        assignments = extract_rows(
            self.supabase_admin.table("review_assignments")
            .select("submission_id,status")
            .eq("reviewer_id", reviewer_id)
            .execute()
        )
        if not assignments:
            return []
        status_by_submission = {a.get("submission_id"): a.get("status") for a in assignments}
        resp = (
            self.supabase_admin.table("submissions")
            .select("*")
            .in_("id", list(status_by_submission.keys()))
            .order("submitted_at", desc=True)
            .execute()
        )
        rows = self._attach_reviewers(extract_rows(resp))
        for row in rows:
            row["has_reviewed"] = (
                status_by_submission.get(row.get("id")) == ReviewAssignmentStatus.REVIEW_SUBMITTED.value
            )
        return rows

    def editor_overview(self) -> dict:
        rows = self.list_submissions()
        awaiting = [r for r in rows if r.get("status") == SubmissionStatus.SUBMITTED.value]
        in_progress = [r for r in rows if r.get("status") in _IN_PROGRESS]
        revisions = [r for r in rows if r.get("status") in _AWAITING_AUTHOR]
        active = [
            r
            for r in rows
            if r.get("status") == SubmissionStatus.SUBMITTED.value or r.get("status") in _IN_PROGRESS
        ]
        return {
            "stats": {
                "total": len(rows),
                "awaiting_assignment": len(awaiting),
                "in_progress": len(in_progress),
                "decisions_pending": len(revisions),
            },
            "active": active,
        }

    def monthly_submission_counts(self, now: Optional[datetime] = None) -> list[dict]:
        now = now or utc_now()
        starts = last_month_starts(now, 6)
        resp = (
            self.supabase_admin.table("submissions")
            .select("id,submitted_at")
            .gte("submitted_at", starts[0].isoformat())
            .execute()
        )
        counts = {(s.year, s.month): 0 for s in starts}
        for row in extract_rows(resp):
            ts = _parse_ts(row.get("submitted_at"))
            if ts is None:
                continue
            key = (ts.year, ts.month)
            if key in counts:
                counts[key] += 1
        return [{"name": _MONTH_NAMES[s.month - 1], "total": counts[(s.year, s.month)]} for s in starts]

    # ---------- 写入 ----------

    def _editor_ids(self) -> list[str]:
        resp = (
            self.supabase_admin.table("user_profiles")
            .select("id")
            .in_("role", EDITOR_ROLES)
            .execute()
        )
        return [r["id"] for r in extract_rows(resp) if r.get("id")]

    def _insert_submission(self, payload: dict) -> dict:
        resp = self.supabase_admin.table("submissions").insert(payload).execute()
        created = first_row(resp)
        if not created:
            raise HTTPException(status_code=500, detail="Failed to create submission")
        created["reviewers"] = []
        created["reviewer_ids"] = []
        return created

    def create_submission(self, *, profile: dict, payload: SubmissionCreate) -> dict:
        primary = payload.primary_contact
        row = {
            "title": payload.title,
            "abstract": payload.abstract,
            "keywords": payload.keywords,
            "manuscript_url": payload.manuscript_url,
            "author_id": profile["id"],
            "author_name": primary.name,
            "author_email": str(primary.email),
            "contributors": [c.model_dump(mode="json") for c in payload.contributors],
            "status": SubmissionStatus.SUBMITTED.value,
            "submitted_at": utc_now_iso(),
            "is_imported": False,
        }
        created = self._insert_submission(row)
        print(f"[Submissions] created id={created.get('id')} author={profile.get('id')}")

        self.history.log_submission_event(
            submission_id=created["id"],
            event_type=SubmissionEvent.SUBMISSION_CREATED.value,
            context={"author_name": primary.name},
        )
        self.notifications.notify_many(
            user_ids=self._editor_ids(),
            submission_id=created["id"],
            event_type="NEW_SUBMISSION",
            context={"submission_title": created.get("title"), "author_name": primary.name},
        )
        return created

    def import_submission(self, *, payload: SubmissionImport) -> dict:
        primary = payload.primary_contact
        submitted_at = payload.original_submission_date or utc_now()
        if submitted_at.tzinfo is None:
            submitted_at = submitted_at.replace(tzinfo=timezone.utc)
        row = {
            "title": payload.title,
            "abstract": payload.abstract,
            "keywords": payload.keywords,
            "manuscript_url": payload.manuscript_url,
            # 中文注释: 导入稿件不对应系统用户
            "author_id": f"imported_{int(time.time() * 1000)}",
            "author_name": primary.name,
            "author_email": str(primary.email),
            "contributors": [c.model_dump(mode="json") for c in payload.contributors],
            "status": payload.status.value,
            "submitted_at": submitted_at.isoformat(),
            "original_submission_date": payload.original_submission_date.isoformat()
            if payload.original_submission_date
            else None,
            "is_imported": True,
        }
        created = self._insert_submission(row)
        print(f"[Submissions] imported id={created.get('id')} status={payload.status.value}")

        self.history.log_submission_event(
            submission_id=created["id"],
            event_type=SubmissionEvent.SUBMISSION_CREATED.value,
            context={"author_name": f"(Imported) {primary.name}"},
        )
        return created

    @staticmethod
    def _notifiable_author(submission: dict) -> Optional[str]:
        # 中文注释: 导入稿件的 author_id 不是系统用户，不发通知
        if submission.get("is_imported"):
            return None
        return submission.get("author_id")

    def _set_status(self, submission_id: str, status: str) -> dict:
        resp = (
            self.supabase_admin.table("submissions")
            .update({"status": status, "updated_at": utc_now_iso()})
            .eq("id", submission_id)
            .execute()
        )
        updated = first_row(resp)
        if not updated:
            raise HTTPException(status_code=404, detail="Submission not found")
        return updated

    def assign_reviewer(self, *, submission_id: str, reviewer_id: str, actor: dict) -> dict:
        submission = self.get_submission(submission_id)
        if submission.get("status") in SubmissionStatus.final_states():
            raise HTTPException(status_code=409, detail="A final decision has already been made")
        if reviewer_id in (submission.get("reviewer_ids") or []):
            raise HTTPException(status_code=409, detail="This user is already a reviewer for this manuscript")
        if reviewer_id == submission.get("author_id"):
            raise HTTPException(status_code=400, detail="Authors cannot review their own manuscript")

        reviewer = first_row(
            self.supabase_admin.table("user_profiles")
            .select("id,email,display_name,role")
            .eq("id", reviewer_id)
            .limit(1)
            .execute()
        )
        if not reviewer:
            raise HTTPException(status_code=404, detail="Reviewer not found")
        if reviewer.get("role") not in DIRECTORY_ROLES_FOR_EDITOR:
            raise HTTPException(status_code=400, detail="Selected user is not a reviewer")
        reviewer_name = reviewer.get("display_name") or reviewer.get("email") or "Reviewer"

        try:
            self.supabase_admin.table("review_assignments").insert(
                {
                    "submission_id": submission_id,
                    "reviewer_id": reviewer_id,
                    "reviewer_name": reviewer_name,
                    "status": ReviewAssignmentStatus.PENDING.value,
                    "assigned_at": utc_now_iso(),
                }
            ).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(
                    status_code=409, detail="This user is already a reviewer for this manuscript"
                )
            raise

        self.history.log_submission_event(
            submission_id=submission_id,
            event_type=SubmissionEvent.REVIEWER_ASSIGNED.value,
            context={"reviewer_name": reviewer_name},
        )
        self.notifications.generate_notification(
            user_id=reviewer_id,
            submission_id=submission_id,
            event_type="REVIEWER_ASSIGNED",
            context={"submission_title": submission.get("title")},
        )

        if submission.get("status") == SubmissionStatus.SUBMITTED.value:
            new_status = SubmissionStatus.UNDER_PEER_REVIEW.value
            self._set_status(submission_id, new_status)
            self.history.log_submission_event(
                submission_id=submission_id,
                event_type=SubmissionEvent.STATUS_CHANGED.value,
                context={"status": new_status, "actor_name": actor_name(actor)},
            )
            self.notifications.generate_notification(
                user_id=self._notifiable_author(submission),
                submission_id=submission_id,
                event_type="STATUS_CHANGED",
                context={"submission_title": submission.get("title"), "status": new_status},
            )

        print(f"[Submissions] reviewer assigned submission={submission_id} reviewer={reviewer_id} by={actor.get('id')}")
        return self.get_submission(submission_id)

    def make_decision(self, *, submission_id: str, status: str, actor: dict) -> dict:
        normalized = normalize_status(status)
        if normalized not in SubmissionStatus.decision_states():
            raise HTTPException(status_code=400, detail="Invalid decision")

        submission = self.get_submission(submission_id)
        if submission.get("status") in SubmissionStatus.final_states():
            raise HTTPException(status_code=409, detail="A final decision has already been made")

        self._set_status(submission_id, normalized)
        self.history.log_submission_event(
            submission_id=submission_id,
            event_type=SubmissionEvent.STATUS_CHANGED.value,
            context={"status": normalized, "actor_name": actor_name(actor)},
        )
        self.notifications.generate_notification(
            user_id=self._notifiable_author(submission),
            submission_id=submission_id,
            event_type="STATUS_CHANGED",
            context={"submission_title": submission.get("title"), "status": normalized},
        )
        print(f"[Submissions] decision submission={submission_id} status={normalized} by={actor.get('id')}")
        return self.get_submission(submission_id)
