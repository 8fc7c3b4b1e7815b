import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# 在应用启动前加载环境变量
load_dotenv()

_SENTRY_ENABLED = False
try:
    from app.core.sentry_init import init_sentry

    _SENTRY_ENABLED = init_sentry()
    if _SENTRY_ENABLED:
        print("[sentry] enabled")
except Exception as e:
    # 中文注释: Sentry 任何异常不得阻塞启动
    print(f"[sentry] init failed (ignored): {e}")

from app.api.v1 import (
    auth,
    editorial_board,
    notifications,
    public,
    publications,
    reviews,
    screening,
    settings,
    stats,
    submissions,
    uploads,
    users,
)
from app.core.errors import PermissionDeniedError
from app.core.middleware import ExceptionHandlerMiddleware, permission_denied_handler

app = FastAPI(
    title="JournalDesk API",
    description="Academic journal submission, peer review and publication backend",
    version="1.0.0",
)


def _parse_frontend_origins() -> list[str]:
    """
    解析允许跨域的前端 Origins。

    中文注释:
    - 本地默认: http://localhost:3000
    - 生产/预发: 通过 FRONTEND_ORIGIN 或 FRONTEND_ORIGINS 注入（逗号分隔）
    """
    origins: list[str] = []

    single = (os.environ.get("FRONTEND_ORIGIN") or "").strip()
    if single:
        origins.append(single.rstrip("/"))

    many = (os.environ.get("FRONTEND_ORIGINS") or "").strip()
    if many:
        for part in many.split(","):
            o = (part or "").strip().rstrip("/")
            if o:
                origins.append(o)

    if not origins:
        origins = ["http://localhost:3000"]

    return list(dict.fromkeys(origins))


# === 中间件配置 ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=_parse_frontend_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ExceptionHandlerMiddleware)
app.add_exception_handler(PermissionDeniedError, permission_denied_handler)

# === 路由注册 ===
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(submissions.router, prefix="/api/v1")
app.include_router(reviews.router, prefix="/api/v1")
app.include_router(stats.router, prefix="/api/v1")
app.include_router(publications.router, prefix="/api/v1")
app.include_router(editorial_board.router, prefix="/api/v1")
app.include_router(settings.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(uploads.router, prefix="/api/v1")
app.include_router(screening.router, prefix="/api/v1")
app.include_router(public.router, prefix="/api/v1")
app.include_router(public.sitemap_router)


@app.get("/")
async def root():
    return {"message": "JournalDesk API is running", "docs": "/docs"}
