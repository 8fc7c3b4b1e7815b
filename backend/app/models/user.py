from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """
    用户角色（user_profiles.role，单值）

    中文注释:
    - editor/admin 视为“编辑级”权限，可分配审稿人、做决定、管理出版与设置。
    - 新注册用户默认 author。
    """

    AUTHOR = "author"
    REVIEWER = "reviewer"
    EDITOR = "editor"
    ADMIN = "admin"


EDITOR_ROLES = [UserRole.EDITOR.value, UserRole.ADMIN.value]
DIRECTORY_ROLES_FOR_EDITOR = {UserRole.REVIEWER.value, UserRole.EDITOR.value, UserRole.ADMIN.value}


def normalize_role(value: str | None) -> str | None:
    if value is None:
        return None
    v = str(value).strip().lower()
    if not v:
        return None
    try:
        return UserRole(v).value
    except ValueError:
        return None


def is_editor_role(value: str | None) -> bool:
    return normalize_role(value) in EDITOR_ROLES


def dashboard_route(role: str | None) -> str:
    normalized = normalize_role(role)
    if normalized in EDITOR_ROLES:
        return "/dashboard/editor"
    if normalized == UserRole.REVIEWER.value:
        return "/dashboard/reviewer"
    return "/dashboard/author"
