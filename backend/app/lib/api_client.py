import os
from typing import Any, Callable, Optional

from supabase import Client, create_client

from app.core.config import app_config

url: str = app_config.supabase_url

# 中文注释:
# - 公开读取/用户态请求使用 anon key（SUPABASE_ANON_KEY，缺省回退 SUPABASE_KEY）。
# - 角色判定在应用层完成，业务写入统一走 service_role client。
key: str = os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("SUPABASE_KEY") or ""

service_role_key: str = app_config.supabase_key


class _LazySupabaseClient:
    """
    延迟初始化 Supabase Client，避免 import 阶段因为缺少环境变量而失败。

    中文注释:
    - 单元测试会 monkeypatch 各模块里的 `supabase_admin`，因此模块必须“可导入”。
    - 真实运行时，如果缺少 URL/KEY，在第一次访问 client 时抛出清晰错误。
    """

    def __init__(self, factory: Callable[[], Client], *, name: str):
        self._factory = factory
        self._name = name
        self._client: Optional[Client] = None

    def _get(self) -> Client:
        if self._client is None:
            self._client = self._factory()
            print(f"[Supabase] client initialised: {self._name}")
        return self._client

    def __getattr__(self, item: str) -> Any:
        return getattr(self._get(), item)


def _require_supabase_url() -> str:
    if not url:
        raise RuntimeError("SUPABASE_URL is required")
    return url


def _require_anon_key() -> str:
    if not key:
        raise RuntimeError("SUPABASE_ANON_KEY or SUPABASE_KEY is required")
    return key


def _create_supabase() -> Client:
    return create_client(_require_supabase_url(), _require_anon_key())


def _create_supabase_admin() -> Client:
    admin_key = service_role_key or key
    if not admin_key:
        raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_KEY) is required")
    return create_client(_require_supabase_url(), admin_key)


# === anon client：Auth（signup/login）与公开读取 ===
supabase: Client = _LazySupabaseClient(_create_supabase, name="supabase")  # type: ignore[assignment]

# === service_role client：业务读写 ===
supabase_admin: Client = _LazySupabaseClient(_create_supabase_admin, name="supabase_admin")  # type: ignore[assignment]


def create_user_supabase_client(access_token: str) -> Client:
    """
    以“当前用户”身份调用 PostgREST（RLS 生效）。

    中文注释:
    - 不能在全局 supabase 实例上调用 postgrest.auth(token)，并发请求会串号。
    - 因此每个请求创建一个轻量 client 并注入当前用户 JWT。
    """

    client = create_client(_require_supabase_url(), _require_anon_key())
    client.postgrest.auth(access_token)
    return client
