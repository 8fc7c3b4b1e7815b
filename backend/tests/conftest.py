import pytest
import pytest_asyncio
import os
import jwt
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from typing import AsyncGenerator

# Import app from the correct location
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from main import app
from app.core import roles as roles_module
from app.core.short_ttl_cache import public_cache
from tests.utils.fake_supabase import FakeSupabase

# === 全局测试配置 ===
# 中文注释:
# 1. 显式使用 pytest_asyncio.fixture 解决 STRICT 模式下的生成器问题。
# 2. JWT 令牌生成用于测试认证（HS256，本地密钥校验，不访问 Supabase）。
# 3. 数据层统一使用内存版 FakeSupabase，通过 monkeypatch 各模块的 supabase_admin 注入。

DEFAULT_USER_ID = "00000000-0000-0000-0000-000000000000"


@pytest_asyncio.fixture
async def client() -> AsyncGenerator:
    """
    提供一个模拟的异步测试客户端
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver"
    ) as ac:
        yield ac


def generate_test_token(user_id: str = DEFAULT_USER_ID, email: str = "test@example.com"):
    """
    生成用于测试的JWT令牌
    """
    secret = os.environ.get("SUPABASE_JWT_SECRET", "mock-secret-replace-later")
    now = datetime.now(timezone.utc)

    payload = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "exp": now + timedelta(hours=1),
        "iat": now,
        "role": "authenticated"
    }

    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: str = DEFAULT_USER_ID, email: str = "test@example.com") -> dict:
    return {"Authorization": f"Bearer {generate_test_token(user_id, email)}"}


@pytest.fixture
def auth_token():
    """
    提供有效的认证令牌用于测试
    """
    return generate_test_token()


@pytest.fixture
def expired_token():
    """
    提供过期的认证令牌用于测试
    """
    secret = os.environ.get("SUPABASE_JWT_SECRET", "mock-secret-replace-later")
    now = datetime.now(timezone.utc)

    payload = {
        "sub": DEFAULT_USER_ID,
        "email": "test@example.com",
        "aud": "authenticated",
        "exp": now - timedelta(hours=1),  # 已过期
        "iat": now - timedelta(hours=2),
        "role": "authenticated"
    }

    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def invalid_token():
    """
    提供无效的认证令牌用于测试
    """
    return "invalid.jwt.token"


@pytest.fixture(autouse=True)
def _clear_public_cache():
    public_cache.invalidate()
    yield
    public_cache.invalidate()


@pytest.fixture
def fake_db(monkeypatch):
    """
    内存数据库；已注入 roles 模块，用于 get_current_profile 查询 user_profiles。
    """
    monkeypatch.delenv("ADMIN_EMAILS", raising=False)
    db = FakeSupabase()
    monkeypatch.setattr(roles_module, "supabase_admin", db)
    return db


@pytest.fixture
def login_as(fake_db):
    """
    以指定角色登录：写入 profile 并返回 Authorization 头。
    """

    def _login(role: str, user_id: str = DEFAULT_USER_ID, display_name: str = "Test User") -> dict:
        fake_db.tables.setdefault("user_profiles", [])
        fake_db.tables["user_profiles"] = [p for p in fake_db.tables["user_profiles"] if p.get("id") != user_id]
        fake_db.tables["user_profiles"].append(
            {
                "id": user_id,
                "email": "test@example.com",
                "display_name": display_name,
                "role": role,
            }
        )
        return auth_headers(user_id)

    return _login
