"""LoggingMiddleware

为每个 HTTP 请求确定 request_id 并绑定到 structlog contextvars。
上游（反向代理）传入合法 ULID 形式的 X-Request-ID 时沿用，否则重新生成。
健康检查请求只记 DEBUG，避免淹没发帖/列表日志。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"
HEALTH_CHECK_PATHS = frozenset({"/health", "/ready"})


def resolve_request_id(incoming: str | None) -> str:
    """沿用合法的上游 request_id，否则生成新的 ULID"""
    if not incoming:
        return str(ULID())
    try:
        return str(ULID.from_str(incoming.strip()))
    except ValueError:
        return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        log = structlog.get_logger()
        is_health_check = request.url.path in HEALTH_CHECK_PATHS
        emit = log.adebug if is_health_check else log.ainfo

        # 发帖请求记录上传体积，便于排查 413
        content_length = request.headers.get("content-length")
        if request.method == "POST" and content_length is not None:
            await emit("request_started", content_length=content_length)
        else:
            await emit("request_started")
        started = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            await log.aexception(
                "request_failed",
                duration_ms=int((time.monotonic() - started) * 1000),
            )
            raise

        await emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
