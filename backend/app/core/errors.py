from __future__ import annotations

import json
from typing import Any, Optional

# 中文注释: Postgres insufficient_privilege / PostgREST JWT 拒绝
_PERMISSION_CODES = {"42501", "pgrst301", "pgrst302"}


class PermissionDeniedError(Exception):
    """
    托管数据库（RLS）拒绝请求时抛出，携带被拒绝请求的上下文。

    中文注释:
    - context 包含 path / operation / request_resource_data，统一由 main.py 的异常处理器渲染为 403。
    - operation 取值: get / list / create / update / delete / write。
    """

    def __init__(
        self,
        *,
        path: str,
        operation: str,
        request_resource_data: Optional[Any] = None,
    ) -> None:
        self.context: dict[str, Any] = {"path": path, "operation": operation}
        if request_resource_data is not None:
            self.context["request_resource_data"] = request_resource_data
        message = (
            "Missing or insufficient permissions: the following request was denied by the database:\n"
            + json.dumps(self.context, indent=2, default=str)
        )
        super().__init__(message)

    def public_context(self, *, include_data: bool) -> dict[str, Any]:
        if include_data:
            return dict(self.context)
        return {k: v for k, v in self.context.items() if k != "request_resource_data"}


def is_permission_denied(exc: BaseException) -> bool:
    code = str(getattr(exc, "code", "") or "").strip().lower()
    if code in _PERMISSION_CODES:
        return True
    text = str(exc).lower()
    return "42501" in text or "row-level security" in text or "permission denied" in text
