from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.roles import get_current_profile
from app.lib.api_client import supabase, supabase_admin
from app.models.user import UserRole, dashboard_route
from app.schemas.user import LoginRequest, SignupRequest

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_client() -> Any:
    return supabase


def _admin_client() -> Any:
    return supabase_admin


def _session_payload(result: Any) -> dict:
    user = getattr(result, "user", None)
    session = getattr(result, "session", None)
    return {
        "user": {"id": getattr(user, "id", None), "email": getattr(user, "email", None)} if user else None,
        "session": {
            "access_token": getattr(session, "access_token", None),
            "refresh_token": getattr(session, "refresh_token", None),
            "expires_in": getattr(session, "expires_in", None),
        }
        if session
        else None,
    }


@router.post("/signup", status_code=201)
async def signup(payload: SignupRequest):
    """
    邮箱注册（Supabase Auth），同时创建 user_profiles（默认 author）。

    中文注释:
    - 若项目开启邮箱确认，session 为空，前端需提示用户查收邮件。
    """
    try:
        result = _auth_client().auth.sign_up(
            {
                "email": payload.email,
                "password": payload.password,
                "options": {"data": {"display_name": payload.display_name}},
            }
        )
    except Exception as e:
        print(f"[Auth] signup failed email={payload.email}: {e}")
        raise HTTPException(status_code=400, detail=f"Signup failed: {e}")

    data = _session_payload(result)
    user = data["user"]
    if not user or not user.get("id"):
        raise HTTPException(status_code=400, detail="Signup failed")

    try:
        _admin_client().table("user_profiles").upsert(
            {
                "id": user["id"],
                "email": payload.email,
                "display_name": payload.display_name,
                "role": UserRole.AUTHOR.value,
            },
            on_conflict="id",
        ).execute()
    except Exception as e:
        # 中文注释: 首次访问 /users/me 时会自动补建 profile，这里失败不阻断注册
        print(f"[Auth] profile bootstrap failed user={user['id']}: {e}")

    return {"success": True, "data": data}


@router.post("/login")
async def login(payload: LoginRequest):
    try:
        result = _auth_client().auth.sign_in_with_password(
            {"email": payload.email, "password": payload.password}
        )
    except Exception as e:
        print(f"[Auth] login failed email={payload.email}: {e}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    data = _session_payload(result)
    if not data["session"]:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return {"success": True, "data": data}


@router.get("/me")
async def me(profile: dict = Depends(get_current_profile)):
    """
    当前用户 + 按角色的仪表盘跳转地址
    """
    public = {k: v for k, v in profile.items() if k != "access_token"}
    return {
        "success": True,
        "data": {"profile": public, "dashboard": dashboard_route(profile.get("role"))},
    }
