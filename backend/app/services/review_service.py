from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import HTTPException

from app.models.submission import ReviewAssignmentStatus
from app.schemas.review import ReviewSubmit
from app.services.history_service import HistoryService, SubmissionEvent
from app.services.notification_service import NotificationService
from app.services.submission_service import SubmissionService
from app.services.supabase_helpers import extract_rows, first_row, utc_now_iso

_CONFIDENTIAL_FIELDS = ("comments_for_editor",)


@dataclass
class ReviewService:
    supabase_admin: Any
    submissions: Optional[SubmissionService] = field(default=None)
    history: Optional[HistoryService] = field(default=None)
    notifications: Optional[NotificationService] = field(default=None)

    def __post_init__(self) -> None:
        if self.history is None:
            self.history = HistoryService(self.supabase_admin)
        if self.notifications is None:
            self.notifications = NotificationService(self.supabase_admin)
        if self.submissions is None:
            self.submissions = SubmissionService(
                self.supabase_admin, history=self.history, notifications=self.notifications
            )

    def _get_assignment(self, submission_id: str, reviewer_id: str) -> Optional[dict]:
        resp = (
            self.supabase_admin.table("review_assignments")
            .select("id,submission_id,reviewer_id,reviewer_name,status")
            .eq("submission_id", submission_id)
            .eq("reviewer_id", reviewer_id)
            .limit(1)
            .execute()
        )
        return first_row(resp)

    def submit_review(self, *, submission_id: str, reviewer: dict, payload: ReviewSubmit) -> dict:
        """
        审稿人提交评审意见。

        中文注释:
        1) 必须是该稿件的已分配审稿人（否则 403），且每个审稿人只能提交一次（否则 409）。
        2) 写入 submission_reviews 后把分配记录置为 review_submitted。
        3) 记录历史 + 通知作者（旁路写入）。
        """
        submission = self.submissions.get_submission(submission_id)
        reviewer_id = reviewer["id"]
        assignment = self._get_assignment(submission_id, reviewer_id)
        if not assignment:
            raise HTTPException(status_code=403, detail="You are not assigned to review this manuscript")
        if assignment.get("status") == ReviewAssignmentStatus.REVIEW_SUBMITTED.value:
            raise HTTPException(status_code=409, detail="You have already submitted a review for this manuscript")

        reviewer_name = (
            reviewer.get("display_name") or assignment.get("reviewer_name") or reviewer.get("email") or "Reviewer"
        )
        row = {
            "submission_id": submission_id,
            "reviewer_id": reviewer_id,
            "reviewer_name": reviewer_name,
            "recommendation": payload.recommendation.value,
            "comments_for_editor": payload.comments_for_editor or "",
            "comments_for_author": payload.comments_for_author or "",
            "submitted_at": utc_now_iso(),
        }
        created = first_row(self.supabase_admin.table("submission_reviews").insert(row).execute())
        if not created:
            raise HTTPException(status_code=500, detail="Failed to submit review")

        (
            self.supabase_admin.table("review_assignments")
            .update({"status": ReviewAssignmentStatus.REVIEW_SUBMITTED.value})
            .eq("id", assignment["id"])
            .execute()
        )

        self.history.log_submission_event(
            submission_id=submission_id,
            event_type=SubmissionEvent.REVIEW_SUBMITTED.value,
            context={"reviewer_name": reviewer_name},
        )
        if not submission.get("is_imported"):
            self.notifications.generate_notification(
                user_id=submission.get("author_id"),
                submission_id=submission_id,
                event_type="REVIEW_SUBMITTED",
                context={"submission_title": submission.get("title")},
            )
        print(f"[Reviews] submitted submission={submission_id} reviewer={reviewer_id}")
        return created

    def list_reviews(
        self,
        submission_id: str,
        *,
        hide_confidential: bool = False,
        reviewer_id: Optional[str] = None,
    ) -> list[dict]:
        query = (
            self.supabase_admin.table("submission_reviews")
            .select("*")
            .eq("submission_id", submission_id)
        )
        if reviewer_id:
            query = query.eq("reviewer_id", reviewer_id)
        rows = extract_rows(query.order("submitted_at", desc=True).execute())
        if hide_confidential:
            rows = [{k: v for k, v in r.items() if k not in _CONFIDENTIAL_FIELDS} for r in rows]
        return rows
