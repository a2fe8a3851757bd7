"""gateway 测试配置 -- FastAPI app + httpx AsyncClient fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from chanboard.core.config import BoardConfig
from chanboard.core.store import create_store_group
from httpx import ASGITransport, AsyncClient

# 测试用图片上限，便于构造超限上传
TEST_MAX_IMAGE_BYTES = 8 * 1024


@pytest_asyncio.fixture
async def test_app(tmp_path: Path):
    """创建测试用 FastAPI app，手动初始化 lifespan 状态"""
    os.environ["CHANBOARD_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["CHANBOARD_UPLOADS_DIR"] = str(tmp_path / "uploads")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from chanboard.gateway.main import create_app

    app = create_app()

    # 手动初始化（绕过 lifespan）
    board_config = BoardConfig(page_size=10, max_image_bytes=TEST_MAX_IMAGE_BYTES)
    store_group = await create_store_group(
        str(tmp_path / "test.db"),
        str(tmp_path / "uploads"),
        max_image_bytes=board_config.max_image_bytes,
        list_order=board_config.list_order,
    )
    app.state.board_config = board_config
    app.state.store_group = store_group

    yield app

    await store_group.close()
    os.environ.pop("CHANBOARD_DB_PATH", None)
    os.environ.pop("CHANBOARD_UPLOADS_DIR", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
