from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from app.core.errors import PermissionDeniedError, is_permission_denied


def extract_supabase_data(response: Any) -> Any:
    if response is None:
        return None
    data = getattr(response, "data", None)
    if data is not None:
        return data
    if isinstance(response, tuple) and len(response) == 2:
        return response[1]
    return None


def extract_rows(response: Any) -> list[dict]:
    data = extract_supabase_data(response)
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


def first_row(response: Any) -> Optional[dict]:
    rows = extract_rows(response)
    return rows[0] if rows else None


def is_unique_violation(error: Any) -> bool:
    if not error:
        return False
    code = str(getattr(error, "code", "") or "")
    if code == "23505":
        return True
    lowered = str(error).lower()
    return "duplicate key" in lowered or "unique constraint" in lowered or "23505" in lowered


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def execute_or_deny(query: Any, *, path: str, operation: str, data: Any = None) -> Any:
    """
    执行 PostgREST 查询；若被 RLS 拒绝则转换为 PermissionDeniedError。

    中文注释:
    - 其它异常原样抛出，由上层 HTTP 层处理（或由中间件兜底为 500）。
    """
    try:
        return query.execute()
    except Exception as e:
        if is_permission_denied(e):
            raise PermissionDeniedError(path=path, operation=operation, request_resource_data=data) from e
        raise
