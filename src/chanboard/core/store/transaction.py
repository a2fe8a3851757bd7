"""附件+帖子原子事务封装

图片元数据和帖子行在同一 SQLite 事务内提交：
要么两者都可见，要么都不存在（文件同步清理），不会出现悬空 image_ref。
"""

import asyncio
from datetime import UTC, datetime

import aiosqlite
import structlog

from ..exceptions import StorageError
from ..models.thread import Thread
from .attachment_store import SqliteAttachmentStore
from .thread_store import SqliteThreadStore, validate_thread_fields

log = structlog.get_logger()


async def create_thread_with_image(
    conn: aiosqlite.Connection,
    write_lock: asyncio.Lock,
    thread_store: SqliteThreadStore,
    attachment_store: SqliteAttachmentStore,
    title: str,
    message: str,
    image_bytes: bytes,
    declared_content_type: str | None = None,
) -> Thread:
    """在同一事务内原子写入附件和帖子

    Args:
        conn: 写连接（附件和帖子须在同一连接上操作以保证事务性）
        write_lock: 写连接的串行化锁
        thread_store: ThreadStore 实例
        attachment_store: AttachmentStore 实例
        title: 标题
        message: 正文
        image_bytes: 图片原始字节
        declared_content_type: 客户端声明的 MIME 类型（仅记录）

    Raises:
        ValidationError: 标题/正文非法（不写入任何文件）
        EmptyPayloadError / PayloadTooLargeError / UnsupportedFormatError: 图片非法
        StorageError: 事务提交失败，自动回滚并删除已写文件
    """
    # 先校验文本，非法输入不触发任何文件写入
    title, message = validate_thread_fields(title, message)

    attachment = await attachment_store.prepare(image_bytes, declared_content_type)
    created_at = datetime.now(UTC)

    async with write_lock:
        try:
            await attachment_store.insert_metadata(attachment)
            thread_id = await thread_store.insert_thread(
                title, message, attachment.ref, created_at
            )
            # 原子提交
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            await attachment_store.discard(attachment)
            log.error("thread_with_image_create_failed", ref=attachment.ref, error=str(e))
            raise StorageError("create_thread_with_image", e) from e
        except BaseException:
            await conn.rollback()
            await attachment_store.discard(attachment)
            raise

    log.info(
        "thread_created",
        thread_id=thread_id,
        has_image=True,
        image_ref=attachment.ref,
        image_size=attachment.size,
    )
    return Thread(
        id=thread_id,
        title=title,
        message=message,
        image_ref=attachment.ref,
        created_at=created_at,
    )
