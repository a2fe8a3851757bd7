"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出
Logfire APM：LOGFIRE_SEND_TO_LOGFIRE 环境变量控制，false 时降级为纯本地日志。

非法的 CHANBOARD_LOG_FORMAT / CHANBOARD_LOG_LEVEL 与其他板块配置一样在启动时抛出 ConfigError。
"""

import logging
import os

import structlog
from chanboard.core.exceptions import ConfigError
from fastapi import FastAPI

LOG_FORMATS = ("dev", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# 请求日志由 LoggingMiddleware 负责；aiosqlite 在 DEBUG 下逐条记录 SQL 操作
_QUIET_LOGGERS = ("uvicorn.access", "aiosqlite")


def read_log_settings() -> tuple[str, str]:
    """读取并校验日志配置

    Returns:
        (log_format, log_level)

    Raises:
        ConfigError: 取值不在允许范围内
    """
    log_format = os.environ.get("CHANBOARD_LOG_FORMAT", "dev").strip().lower()
    log_level = os.environ.get("CHANBOARD_LOG_LEVEL", "INFO").strip().upper()

    if log_format not in LOG_FORMATS:
        raise ConfigError(
            f"CHANBOARD_LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, got {log_format!r}"
        )
    if log_level not in LOG_LEVELS:
        raise ConfigError(
            f"CHANBOARD_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}"
        )
    return log_format, log_level


def setup_logging() -> None:
    """初始化 structlog 配置

    根据 CHANBOARD_LOG_FORMAT 环境变量选择渲染模式：
    - "json": 结构化 JSON 输出（生产环境）
    - "dev" (默认): pretty print 可读输出
    """
    log_format, log_level = read_log_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
        # JSON 模式下异常栈作为字段输出，便于日志平台检索
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logfire(app: FastAPI) -> None:
    """Logfire 可选初始化

    LOGFIRE_SEND_TO_LOGFIRE 环境变量控制：
    - "true": 启用 Logfire APM（需要 LOGFIRE_TOKEN，安装 chanboard[apm]）
    - "false" (默认): 纯本地日志
    """
    send_to_logfire = os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower()
    if send_to_logfire != "true":
        return

    try:
        import logfire

        logfire.configure(service_name="chanboard")
        logfire.instrument_fastapi(app)
    except Exception:
        # Logfire 初始化失败不影响服务运行
        structlog.get_logger().warning(
            "logfire_init_failed",
            message="Logfire 初始化失败，降级为纯本地日志",
        )
