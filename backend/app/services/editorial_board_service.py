from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException

from app.models.editorial_board import BOARD_SECTIONS, BoardMemberCreate
from app.services.supabase_helpers import extract_rows, first_row

_COLUMNS = "id,user_id,name,qualifications,affiliation,country,role,image_seed,order"

# 中文注释: 关联用户未填写专业方向时的单位占位
UNKNOWN_AFFILIATION = "N/A"


@dataclass
class EditorialBoardService:
    supabase_admin: Any

    def list_members(self) -> list[dict]:
        resp = (
            self.supabase_admin.table("editorial_board_members")
            .select(_COLUMNS)
            .order("order", desc=False)
            .execute()
        )
        return extract_rows(resp)

    def grouped_members(self) -> list[dict]:
        """
        公开编委页：按固定角色顺序分组，空分组不返回。
        """
        members = self.list_members()
        sections: list[dict] = []
        for role, heading in BOARD_SECTIONS:
            group = [m for m in members if m.get("role") == role.value]
            if group:
                sections.append({"role": role.value, "title": heading, "members": group})
        return sections

    def create_member(self, payload: BoardMemberCreate) -> dict:
        data = payload.model_dump(mode="json")
        user_id = data.get("user_id") or None

        if user_id:
            # 中文注释: 关联系统用户时，以用户资料补齐姓名/单位，头像种子使用 uid
            profile = first_row(
                self.supabase_admin.table("user_profiles")
                .select("id,display_name,email,specialization")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
            if not profile:
                raise HTTPException(status_code=404, detail="User not found")
            data["name"] = data.get("name") or profile.get("display_name") or profile.get("email")
            data["affiliation"] = data.get("affiliation") or profile.get("specialization") or UNKNOWN_AFFILIATION
            data["image_seed"] = user_id

        if not data.get("name"):
            raise HTTPException(status_code=400, detail="Name is required")
        if not data.get("affiliation"):
            raise HTTPException(status_code=400, detail="Affiliation is required")
        if not data.get("image_seed"):
            raise HTTPException(status_code=400, detail="Image seed is required")

        data["user_id"] = user_id
        data["order"] = len(
            extract_rows(self.supabase_admin.table("editorial_board_members").select("id").execute())
        )
        created = first_row(self.supabase_admin.table("editorial_board_members").insert(data).execute())
        if not created:
            raise HTTPException(status_code=500, detail="Failed to add board member")
        print(f"[EditorialBoard] member created id={created.get('id')} role={data.get('role')}")
        return created

    def update_member(self, member_id: str, patch: dict) -> dict:
        if not patch:
            raise HTTPException(status_code=400, detail="No fields to update")
        resp = (
            self.supabase_admin.table("editorial_board_members")
            .update(patch)
            .eq("id", member_id)
            .execute()
        )
        updated = first_row(resp)
        if not updated:
            raise HTTPException(status_code=404, detail="Board member not found")
        return updated

    def delete_member(self, member_id: str) -> None:
        resp = self.supabase_admin.table("editorial_board_members").delete().eq("id", member_id).execute()
        if not extract_rows(resp):
            raise HTTPException(status_code=404, detail="Board member not found")

    def sync_linked_profile(self, *, user_id: str, name: str, affiliation: str | None) -> int:
        patch: dict[str, Any] = {"name": name, "affiliation": affiliation or UNKNOWN_AFFILIATION}
        resp = (
            self.supabase_admin.table("editorial_board_members")
            .update(patch)
            .eq("user_id", user_id)
            .execute()
        )
        return len(extract_rows(resp))
