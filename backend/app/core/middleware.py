import time
import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import app_config
from app.core.errors import PermissionDeniedError

# === 结构化日志配置 ===
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("journaldesk")


def permission_denied_response(exc: PermissionDeniedError) -> JSONResponse:
    # 中文注释: 生产环境不回显请求体，只保留 path/operation
    return JSONResponse(
        status_code=403,
        content={
            "detail": "Missing or insufficient permissions",
            "type": "permission_denied",
            "context": exc.public_context(include_data=not app_config.is_production),
        },
    )


async def permission_denied_handler(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    logger.warning(
        f"Permission denied: Method: {request.method} Path: {request.url.path} Context: {exc.context}"
    )
    return permission_denied_response(exc)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """
    统一异常捕获中间件：请求日志 + 未处理异常兜底为 500
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            logger.info(
                f"Method: {request.method} Path: {request.url.path} Status: {response.status_code} Time: {process_time:.4f}s"
            )
            return response
        except HTTPException as exc:
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail, "type": "http_exception"},
            )
        except PermissionDeniedError as exc:
            return permission_denied_response(exc)
        except Exception as e:
            logger.error(f"Unhandled Exception: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "type": "server_error"},
            )
