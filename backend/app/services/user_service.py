from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from fastapi import HTTPException

from app.lib.api_client import create_user_supabase_client
from app.models.submission import ReviewAssignmentStatus
from app.models.user import DIRECTORY_ROLES_FOR_EDITOR, UserRole, normalize_role
from app.schemas.user import ProfileUpdate
from app.services.editorial_board_service import EditorialBoardService
from app.services.supabase_helpers import execute_or_deny, extract_rows, first_row, utc_now_iso

_PROFILE_COLUMNS = "id,email,display_name,role,specialization,photo_url,created_at,updated_at"


@dataclass
class UserService:
    supabase_admin: Any
    user_client_factory: Callable[[str], Any] = create_user_supabase_client
    board: Optional[EditorialBoardService] = field(default=None)

    def __post_init__(self) -> None:
        if self.board is None:
            self.board = EditorialBoardService(self.supabase_admin)

    def list_directory(self, *, viewer: dict, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        用户目录。

        中文注释:
        - admin 可见全部用户；editor 仅可见 reviewer/editor/admin（不暴露普通作者）。
        - 搜索为大小写不敏感的姓名/邮箱包含匹配。
        """
        query = self.supabase_admin.table("user_profiles").select(_PROFILE_COLUMNS)
        if normalize_role(viewer.get("role")) != UserRole.ADMIN.value:
            query = query.in_("role", sorted(DIRECTORY_ROLES_FOR_EDITOR))
        rows = extract_rows(query.order("display_name", desc=False).execute())

        term = (search or "").strip().lower()
        if term:
            rows = [
                r
                for r in rows
                if term in str(r.get("display_name") or "").lower() or term in str(r.get("email") or "").lower()
            ]
        return rows

    def list_reviewers(self) -> List[Dict[str, Any]]:
        resp = (
            self.supabase_admin.table("user_profiles")
            .select("id,display_name,email,specialization")
            .eq("role", UserRole.REVIEWER.value)
            .execute()
        )
        return extract_rows(resp)

    def get_user(self, user_id: str) -> Dict[str, Any]:
        row = first_row(
            self.supabase_admin.table("user_profiles").select(_PROFILE_COLUMNS).eq("id", user_id).limit(1).execute()
        )
        if not row:
            raise HTTPException(status_code=404, detail="User not found")
        return row

    def review_history(self, user_id: str) -> List[Dict[str, Any]]:
        """
        审稿人已完成的评审（分配状态为 review_submitted 的稿件）。
        """
        assignments = extract_rows(
            self.supabase_admin.table("review_assignments")
            .select("submission_id,assigned_at")
            .eq("reviewer_id", user_id)
            .eq("status", ReviewAssignmentStatus.REVIEW_SUBMITTED.value)
            .execute()
        )
        ids = [a.get("submission_id") for a in assignments if a.get("submission_id")]
        if not ids:
            return []
        resp = (
            self.supabase_admin.table("submissions")
            .select("id,title,author_name,status,submitted_at")
            .in_("id", ids)
            .order("submitted_at", desc=True)
            .execute()
        )
        return extract_rows(resp)

    def update_role(self, *, user_id: str, role: str) -> Dict[str, Any]:
        normalized = normalize_role(role)
        if normalized is None:
            raise HTTPException(status_code=400, detail="Invalid role")
        resp = (
            self.supabase_admin.table("user_profiles")
            .update({"role": normalized, "updated_at": utc_now_iso()})
            .eq("id", user_id)
            .execute()
        )
        updated = first_row(resp)
        if not updated:
            raise HTTPException(status_code=404, detail="User not found")
        print(f"[Users] role updated user={user_id} role={normalized}")
        return updated

    def update_own_profile(self, *, user: dict, update: ProfileUpdate) -> Dict[str, Any]:
        """
        更新当前用户的资料（用户态 client，RLS 生效）。

        中文注释:
        - 关联到该用户的编委记录同步更新姓名 / 单位（单位取专业方向）。
        - 编委同步失败只记日志，不回滚个人资料。
        """
        data = update.model_dump(exclude_unset=True, exclude_none=True)
        if not data:
            raise HTTPException(status_code=400, detail="No fields to update")
        data["updated_at"] = utc_now_iso()

        client = self.user_client_factory(user["access_token"])
        resp = execute_or_deny(
            client.table("user_profiles").update(data).eq("id", user["id"]),
            path=f"user_profiles/{user['id']}",
            operation="update",
            data=data,
        )
        updated = first_row(resp)
        if not updated:
            raise HTTPException(status_code=404, detail="Profile not found")

        try:
            synced = self.board.sync_linked_profile(
                user_id=user["id"],
                name=updated.get("display_name") or updated.get("email") or "",
                affiliation=updated.get("specialization"),
            )
            if synced:
                print(f"[Users] synced {synced} editorial board entries for user={user['id']}")
        except Exception as e:
            print(f"[Users] editorial board sync failed user={user['id']}: {e}")
        return updated
