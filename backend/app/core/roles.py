import os
from typing import Callable, Iterable, Optional, Set

from fastapi import Depends, HTTPException

from app.core.auth_utils import get_current_user
from app.lib.api_client import supabase_admin
from app.models.user import UserRole, normalize_role


def _parse_admin_emails() -> Set[str]:
    raw = os.environ.get("ADMIN_EMAILS", "")
    return {e.strip().lower() for e in raw.split(",") if e.strip()}


def _is_admin_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return email.strip().lower() in _parse_admin_emails()


def _default_display_name(email: Optional[str]) -> str:
    local = (email or "").split("@", 1)[0].strip()
    return local or "New User"


async def get_current_profile(current_user: dict = Depends(get_current_user)) -> dict:
    """
    获取当前用户的 profile（含 role）。

    中文注释:
    1) 首次访问时自动创建 user_profiles 记录，默认 role=author。
    2) 若 email 在 ADMIN_EMAILS 中，则自动提升为 admin，便于本地/演示环境初始化。
    3) 返回值附带 access_token，供需要“用户态 client”的服务使用。
    """
    user_id = current_user["id"]
    email = current_user.get("email")
    role = UserRole.ADMIN.value if _is_admin_email(email) else UserRole.AUTHOR.value

    try:
        resp = supabase_admin.table("user_profiles").select("*").eq("id", user_id).execute()
        existing = (resp.data or [None])[0]
        if existing:
            if _is_admin_email(email) and existing.get("role") != UserRole.ADMIN.value:
                supabase_admin.table("user_profiles").update({"role": role}).eq("id", user_id).execute()
                existing["role"] = role
            existing["role"] = normalize_role(existing.get("role")) or UserRole.AUTHOR.value
            return {**existing, "access_token": current_user.get("access_token")}

        payload = {
            "id": user_id,
            "email": email,
            "display_name": _default_display_name(email),
            "role": role,
        }
        inserted = supabase_admin.table("user_profiles").insert(payload).execute()
        created = (inserted.data or [payload])[0]
        print(f"[Profiles] created profile user={user_id} role={role}")
        return {**created, "access_token": current_user.get("access_token")}
    except Exception as e:
        print(f"[Profiles] Failed to fetch/create user profile: {e}")
        # 最小化降级：按最低权限返回，避免 UI 完全不可用
        return {
            "id": user_id,
            "email": email,
            "display_name": _default_display_name(email),
            "role": UserRole.AUTHOR.value,
            "access_token": current_user.get("access_token"),
        }


def require_any_role(required: Iterable[str]) -> Callable[[dict], dict]:
    required_set = {r for r in required}

    async def _dep(profile: dict = Depends(get_current_profile)) -> dict:
        if profile.get("role") not in required_set:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return profile

    return _dep
