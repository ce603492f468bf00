"""
访问日志中间件
记录每个HTTP请求的状态码与耗时
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """按状态码选择日志级别；异常继续抛给全局异常处理器"""

    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.time()
        request_info = {
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration=time.time() - start_time,
                error=str(exc),
                error_type=type(exc).__name__,
                **request_info,
                exc_info=True
            )
            raise

        duration = time.time() - start_time
        response.headers["X-Process-Time"] = f"{duration:.3f}"

        log_data = {"status_code": response.status_code, "duration": duration, **request_info}
        if response.status_code < 400:
            logger.info("request_completed", **log_data)
        elif response.status_code < 500:
            logger.warning("request_client_error", **log_data)
        else:
            logger.error("request_server_error", **log_data)
        return response
