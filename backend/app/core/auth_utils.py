import os
from typing import Optional
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from app.lib.api_client import supabase

# === Auth 核心配置 ===
# 中文注释:
# 1. 密钥来源于 Supabase Project Settings 中的 JWT Secret。
# 2. auto_error=False：缺少 Authorization 头时统一返回 401（而不是 FastAPI 版本相关的 403）。
SUPABASE_JWT_SECRET = os.environ.get("SUPABASE_JWT_SECRET", "mock-secret-replace-later")
ALGORITHM = "HS256"

security = HTTPBearer(auto_error=False)


def _decode_token(token: str) -> dict:
    try:
        # 中文注释:
        # 1. Supabase 新版可能使用非对称签名（非 HS256），需要走 Auth API 获取用户。
        # 2. 若仍为 HS256，则用本地密钥校验以减少外部请求。
        header = jwt.get_unverified_header(token)
        if header.get("alg") == ALGORITHM and SUPABASE_JWT_SECRET:
            payload = jwt.decode(
                token, SUPABASE_JWT_SECRET, algorithms=[ALGORITHM], audience="authenticated"
            )
            user_id = payload.get("sub")
            if user_id is None:
                raise HTTPException(status_code=401, detail="Invalid token payload")
            return {"id": user_id, "email": payload.get("email"), "access_token": token}

        # fallback: 通过 Supabase Auth API 校验并获取用户信息
        try:
            response = supabase.auth.get_user(token)
            user = response.user if response else None
        except Exception as e:
            # 中文注释: Supabase 配置缺失/网络异常不应返回 500，统一视为鉴权失败
            print(f"[Auth] JWT fallback verification failed: {e}")
            raise HTTPException(status_code=401, detail="Token invalid or expired")

        if not user:
            raise HTTPException(status_code=401, detail="Invalid token payload")
        return {"id": user.id, "email": user.email, "access_token": token}
    except JWTError as e:
        print(f"[Auth] JWT verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Token invalid or expired")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    解码并验证 Supabase JWT Token，返回 {id, email, access_token}
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return _decode_token(credentials.credentials)

