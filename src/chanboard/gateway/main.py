"""FastAPI 应用主文件

app 创建 + lifespan 管理：配置加载 + DB 初始化/关闭 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from chanboard.core.config import get_db_path, get_uploads_dir, load_board_config
from chanboard.core.store import create_store_group
from fastapi import FastAPI

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .routes import health, threads, uploads

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时加载配置并初始化 DB，关闭时清理连接"""
    # 非法配置在此抛出 ConfigError，阻止启动
    board_config = load_board_config()
    app.state.board_config = board_config

    store_group = await create_store_group(
        get_db_path(),
        get_uploads_dir(),
        max_image_bytes=board_config.max_image_bytes,
        list_order=board_config.list_order,
    )
    app.state.store_group = store_group
    log.info(
        "board_started",
        page_size=board_config.page_size,
        max_image_bytes=board_config.max_image_bytes,
        list_order=board_config.list_order,
    )

    yield

    # 关闭：清理数据库连接
    if getattr(app.state, "store_group", None):
        await app.state.store_group.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="chanboard Gateway",
        version="0.1.0",
        description="匿名图版 API：发帖、分页列表、JPEG 附件",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(threads.router, tags=["threads"])
    app.include_router(uploads.router, tags=["uploads"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
