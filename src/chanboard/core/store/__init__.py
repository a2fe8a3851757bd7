"""chanboard Core Store -- SQLite 持久化实现

提供工厂函数创建 Store 实例组：一个写连接 + 一个读连接（WAL），
写入经共享 write_lock 串行化，读取只观察已提交数据。
"""

import asyncio
from pathlib import Path
from typing import Literal

import aiosqlite

from ..models.thread import Thread
from .attachment_store import SqliteAttachmentStore
from .sqlite_init import configure_connection, init_db
from .thread_store import SqliteThreadStore
from .transaction import create_thread_with_image


class StoreGroup:
    """Store 实例组 -- 写连接与读连接共享同一个数据库文件"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        read_conn: aiosqlite.Connection,
        uploads_dir: Path,
        max_image_bytes: int,
        list_order: Literal["newest", "oldest"] = "newest",
    ) -> None:
        self.conn = conn
        self.read_conn = read_conn
        self.write_lock = asyncio.Lock()
        self.thread_store = SqliteThreadStore(
            conn,
            read_conn=read_conn,
            write_lock=self.write_lock,
            order=list_order,
        )
        self.attachment_store = SqliteAttachmentStore(
            conn,
            uploads_dir,
            max_bytes=max_image_bytes,
            read_conn=read_conn,
            write_lock=self.write_lock,
        )

    async def create_thread(
        self,
        title: str,
        message: str,
        image_bytes: bytes | None = None,
        declared_content_type: str | None = None,
    ) -> Thread:
        """创建帖子；带图时附件与帖子原子提交"""
        if image_bytes is None:
            return await self.thread_store.create(title, message)
        return await create_thread_with_image(
            self.conn,
            self.write_lock,
            self.thread_store,
            self.attachment_store,
            title,
            message,
            image_bytes,
            declared_content_type,
        )

    async def close(self) -> None:
        """关闭读写连接"""
        await self.read_conn.close()
        await self.conn.close()


async def create_store_group(
    db_path: str,
    uploads_dir: str | Path,
    max_image_bytes: int,
    list_order: Literal["newest", "oldest"] = "newest",
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径
        uploads_dir: 图片文件存储目录
        max_image_bytes: 单张图片大小上限
        list_order: 列表顺序

    Returns:
        StoreGroup 实例
    """
    uploads_path = Path(uploads_dir)
    uploads_path.mkdir(parents=True, exist_ok=True)

    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    await init_db(conn)

    read_conn = await aiosqlite.connect(db_path)
    await configure_connection(read_conn)

    return StoreGroup(
        conn=conn,
        read_conn=read_conn,
        uploads_dir=uploads_path,
        max_image_bytes=max_image_bytes,
        list_order=list_order,
    )


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteThreadStore",
    "SqliteAttachmentStore",
    "init_db",
    "create_thread_with_image",
]
