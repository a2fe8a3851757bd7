"""全局 pytest 配置 -- 临时 SQLite 数据库 + StoreGroup fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

# 最小合法 JPEG 头：SOI + APP0(JFIF) ... EOI
JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
JPEG_EOI = b"\xff\xd9"


def make_jpeg(body_size: int = 256) -> bytes:
    return JPEG_HEADER + bytes(i % 251 for i in range(body_size)) + JPEG_EOI


@pytest.fixture
def jpeg_bytes() -> bytes:
    """伪造的 JPEG 内容（只需通过魔数嗅探）"""
    return make_jpeg()


@pytest.fixture
def png_bytes() -> bytes:
    """PNG 魔数开头的内容"""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def tmp_uploads_dir(tmp_path: Path) -> Path:
    """提供临时 uploads 目录"""
    uploads_dir = tmp_path / "uploads"
    uploads_dir.mkdir(parents=True, exist_ok=True)
    return uploads_dir


@pytest_asyncio.fixture
async def db_conn(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from chanboard.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_path / "conn_test.db"))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path, tmp_uploads_dir: Path):
    """提供已初始化的 StoreGroup（新帖在前，图片上限 64KB）"""
    from chanboard.core.store import create_store_group

    group = await create_store_group(
        str(tmp_db_path),
        tmp_uploads_dir,
        max_image_bytes=64 * 1024,
    )
    yield group
    await group.close()
