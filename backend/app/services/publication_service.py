from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException

from app.models.submission import SubmissionStatus, normalize_status
from app.services.supabase_helpers import extract_rows, first_row, is_unique_violation, utc_now, utc_now_iso


@dataclass
class PublicationService:
    """
    出版编排：卷（volume）/ 期（issue）/ 文章（issue_articles）

    中文注释:
    - issue_articles.submission_id 有唯一约束：一篇稿件只能出现在一个期里。
    - 文章标题/作者/稿件 URL 在分配时冗余写入，公开页面无需再查 submissions。
    """

    supabase_admin: Any

    def _volumes(self) -> list[dict]:
        resp = (
            self.supabase_admin.table("volumes")
            .select("id,title,year,created_at")
            .order("year", desc=True)
            .execute()
        )
        rows = extract_rows(resp)
        # 中文注释: 同一年份多卷时，后创建的排在前面
        rows.sort(key=lambda v: (int(v.get("year") or 0), str(v.get("created_at") or "")), reverse=True)
        return rows

    def _issues_for(self, volume_ids: list[str]) -> list[dict]:
        if not volume_ids:
            return []
        resp = (
            self.supabase_admin.table("issues")
            .select("id,volume_id,title,position,created_at")
            .in_("volume_id", volume_ids)
            .order("position", desc=False)
            .execute()
        )
        return extract_rows(resp)

    def _articles_for(self, issue_ids: list[str]) -> list[dict]:
        if not issue_ids:
            return []
        resp = (
            self.supabase_admin.table("issue_articles")
            .select("id,issue_id,submission_id,title,author_name,manuscript_url,position")
            .in_("issue_id", issue_ids)
            .order("position", desc=False)
            .execute()
        )
        return extract_rows(resp)

    def _nest(self, volumes: list[dict]) -> list[dict]:
        issues = self._issues_for([v["id"] for v in volumes])
        articles = self._articles_for([i["id"] for i in issues])

        articles_by_issue: dict[str, list[dict]] = {}
        for a in articles:
            articles_by_issue.setdefault(a.get("issue_id"), []).append(
                {
                    "id": a.get("submission_id"),
                    "title": a.get("title"),
                    "author_name": a.get("author_name"),
                    "manuscript_url": a.get("manuscript_url"),
                }
            )

        issues_by_volume: dict[str, list[dict]] = {}
        for i in sorted(issues, key=lambda x: int(x.get("position") or 0)):
            issues_by_volume.setdefault(i.get("volume_id"), []).append(
                {"id": i["id"], "title": i.get("title"), "articles": articles_by_issue.get(i["id"], [])}
            )

        return [
            {
                "id": v["id"],
                "title": v.get("title"),
                "year": v.get("year"),
                "issues": issues_by_volume.get(v["id"], []),
            }
            for v in volumes
        ]

    def list_volumes(self) -> list[dict]:
        return self._nest(self._volumes())

    def _get_volume(self, volume_id: str) -> dict:
        row = first_row(
            self.supabase_admin.table("volumes").select("id,title,year").eq("id", volume_id).limit(1).execute()
        )
        if not row:
            raise HTTPException(status_code=404, detail="Volume not found")
        return row

    def create_volume(self, title: Optional[str] = None) -> dict:
        year = utc_now().year
        if not title:
            existing = len(extract_rows(self.supabase_admin.table("volumes").select("id").execute()))
            title = f"Volume {existing + 1}, {year}"
        created = first_row(
            self.supabase_admin.table("volumes")
            .insert({"title": title, "year": year, "created_at": utc_now_iso()})
            .execute()
        )
        if not created:
            raise HTTPException(status_code=500, detail="Failed to create volume")
        print(f"[Publications] volume created id={created.get('id')} title={title}")
        return {"id": created["id"], "title": created.get("title"), "year": created.get("year"), "issues": []}

    def add_issue(self, *, volume_id: str, title: str) -> dict:
        title = (title or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="Issue title is required")
        self._get_volume(volume_id)

        position = len(
            extract_rows(self.supabase_admin.table("issues").select("id").eq("volume_id", volume_id).execute())
        )
        created = first_row(
            self.supabase_admin.table("issues")
            .insert({"volume_id": volume_id, "title": title, "position": position, "created_at": utc_now_iso()})
            .execute()
        )
        if not created:
            raise HTTPException(status_code=500, detail="Failed to add issue")
        return {"id": created["id"], "volume_id": volume_id, "title": created.get("title"), "articles": []}

    def _assigned_submission_ids(self) -> set[str]:
        rows = extract_rows(self.supabase_admin.table("issue_articles").select("submission_id").execute())
        return {r.get("submission_id") for r in rows if r.get("submission_id")}

    def list_unassigned_accepted(self) -> list[dict]:
        resp = (
            self.supabase_admin.table("submissions")
            .select("id,title,author_name,manuscript_url,status,submitted_at")
            .eq("status", SubmissionStatus.ACCEPTED.value)
            .order("submitted_at", desc=True)
            .execute()
        )
        assigned = self._assigned_submission_ids()
        return [r for r in extract_rows(resp) if r.get("id") not in assigned]

    def assign_article(self, *, volume_id: str, issue_id: str, submission_id: str) -> dict:
        self._get_volume(volume_id)
        issue = first_row(
            self.supabase_admin.table("issues").select("id,volume_id,title").eq("id", issue_id).limit(1).execute()
        )
        if not issue or issue.get("volume_id") != volume_id:
            raise HTTPException(status_code=404, detail="Issue not found")

        submission = first_row(
            self.supabase_admin.table("submissions")
            .select("id,title,author_name,manuscript_url,status")
            .eq("id", submission_id)
            .limit(1)
            .execute()
        )
        if not submission:
            raise HTTPException(status_code=404, detail="Submission not found")
        if normalize_status(submission.get("status")) != SubmissionStatus.ACCEPTED.value:
            raise HTTPException(status_code=400, detail="Only accepted submissions can be published")

        existing = first_row(
            self.supabase_admin.table("issue_articles")
            .select("id,issue_id,submission_id")
            .eq("submission_id", submission_id)
            .limit(1)
            .execute()
        )
        if existing:
            if existing.get("issue_id") == issue_id:
                # 中文注释: 重复拖拽到同一期：幂等返回
                return self._issue_view(issue)
            raise HTTPException(status_code=409, detail="Submission is already assigned to another issue")

        position = len(
            extract_rows(self.supabase_admin.table("issue_articles").select("id").eq("issue_id", issue_id).execute())
        )
        try:
            self.supabase_admin.table("issue_articles").insert(
                {
                    "issue_id": issue_id,
                    "submission_id": submission_id,
                    "title": submission.get("title"),
                    "author_name": submission.get("author_name"),
                    "manuscript_url": submission.get("manuscript_url"),
                    "position": position,
                }
            ).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail="Submission is already assigned to an issue")
            raise
        print(f"[Publications] article assigned submission={submission_id} issue={issue_id}")
        return self._issue_view(issue)

    def _issue_view(self, issue: dict) -> dict:
        articles = [
            {
                "id": a.get("submission_id"),
                "title": a.get("title"),
                "author_name": a.get("author_name"),
                "manuscript_url": a.get("manuscript_url"),
            }
            for a in self._articles_for([issue["id"]])
        ]
        return {"id": issue["id"], "volume_id": issue.get("volume_id"), "title": issue.get("title"), "articles": articles}

    def get_latest_issue(self) -> Optional[dict]:
        """
        最新一期：年份最大的卷里的最后一期。没有任何卷/期时返回 None。
        """
        volumes = self._volumes()
        if not volumes:
            return None
        latest = self._nest(volumes[:1])[0]
        if not latest["issues"]:
            return None
        issue = latest["issues"][-1]
        return {**issue, "volume_id": latest["id"], "volume_title": latest["title"]}
