"""ThreadStore SQLite 实现

写入走写连接，由 write_lock 串行化 "分配 id + 插入 + 提交"；
读取走独立的读连接（WAL），只会看到已提交的帖子，且不被写入阻塞。
"""

import asyncio
import re
from datetime import UTC, datetime
from typing import Literal

import aiosqlite
import structlog

from ..config import MESSAGE_MAX_LENGTH, TITLE_MAX_LENGTH
from ..exceptions import StorageError, ValidationError
from ..models.thread import Thread

log = structlog.get_logger()

_THREAD_COLUMNS = "id, title, message, image_ref, created_at"

# SQLite INTEGER 为 64 位有符号整数
_SQLITE_MAX_INTEGER = 2**63 - 1

# 控制字符（保留 \t \n \r）；SQLite length() 遇 NUL 截断
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def validate_thread_fields(title: str, message: str) -> tuple[str, str]:
    """校验并裁剪标题和正文

    Returns:
        (title, message) 去除首尾空白后的值

    Raises:
        ValidationError: 为空、超长或含控制字符
    """
    title = (title or "").strip()
    message = (message or "").strip()

    if not title:
        raise ValidationError("title", "Title cannot be empty")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(
            "title",
            f"Title must be at most {TITLE_MAX_LENGTH} characters",
        )
    if _CONTROL_CHARS.search(title):
        raise ValidationError("title", "Title contains control characters")
    if not message:
        raise ValidationError("message", "Message cannot be empty")
    if len(message) > MESSAGE_MAX_LENGTH:
        raise ValidationError(
            "message",
            f"Message must be at most {MESSAGE_MAX_LENGTH} characters",
        )
    if _CONTROL_CHARS.search(message):
        raise ValidationError("message", "Message contains control characters")
    return title, message


class SqliteThreadStore:
    """ThreadStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        read_conn: aiosqlite.Connection | None = None,
        write_lock: asyncio.Lock | None = None,
        order: Literal["newest", "oldest"] = "newest",
    ) -> None:
        self._conn = conn
        self._read_conn = read_conn or conn
        self._write_lock = write_lock or asyncio.Lock()
        self._order_sql = "DESC" if order == "newest" else "ASC"

    async def create(
        self,
        title: str,
        message: str,
        image_ref: str | None = None,
    ) -> Thread:
        """校验并创建帖子

        id 由 AUTOINCREMENT 在事务内分配，失败回滚时不消耗 id。

        Raises:
            ValidationError: 标题/正文非法，或 image_ref 无法解析
            StorageError: 数据库写入失败（已回滚）
        """
        title, message = validate_thread_fields(title, message)
        created_at = datetime.now(UTC)

        async with self._write_lock:
            try:
                thread_id = await self.insert_thread(title, message, image_ref, created_at)
                await self._conn.commit()
            except aiosqlite.IntegrityError as e:
                await self._conn.rollback()
                if image_ref is not None:
                    raise ValidationError(
                        "image_ref",
                        f"Attachment {image_ref} does not exist or is already in use",
                    ) from e
                raise StorageError("create_thread", e) from e
            except aiosqlite.Error as e:
                await self._conn.rollback()
                log.error("thread_create_failed", error=str(e))
                raise StorageError("create_thread", e) from e

        thread = Thread(
            id=thread_id,
            title=title,
            message=message,
            image_ref=image_ref,
            created_at=created_at,
        )
        log.info("thread_created", thread_id=thread_id, has_image=image_ref is not None)
        return thread

    async def insert_thread(
        self,
        title: str,
        message: str,
        image_ref: str | None,
        created_at: datetime,
    ) -> int:
        """插入帖子行并返回分配的 id

        注意：此方法不自动提交事务，需由调用方持有 write_lock 并管理事务。
        """
        cursor = await self._conn.execute(
            """
            INSERT INTO threads (title, message, image_ref, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (title, message, image_ref, created_at.isoformat()),
        )
        return cursor.lastrowid

    async def count(self) -> int:
        """当前帖子总数"""
        try:
            cursor = await self._read_conn.execute("SELECT COUNT(*) FROM threads")
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError("count_threads", e) from e
        return row[0] if row else 0

    async def page(self, offset: int, limit: int) -> list[Thread]:
        """按规范顺序返回切片

        offset 为负时钳制为 0；limit <= 0 或 offset 越界时返回空列表。
        """
        offset = max(offset, 0)
        if limit <= 0:
            return []

        try:
            cursor = await self._read_conn.execute(
                f"SELECT {_THREAD_COLUMNS} FROM threads "
                f"ORDER BY id {self._order_sql} LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError("page_threads", e) from e
        return [self._row_to_thread(row) for row in rows]

    async def get_thread(self, thread_id: int) -> Thread | None:
        """根据 id 查询帖子

        超出 SQLite INTEGER 范围的 id 不可能存在，直接返回 None。
        """
        if not -_SQLITE_MAX_INTEGER - 1 <= thread_id <= _SQLITE_MAX_INTEGER:
            return None
        try:
            cursor = await self._read_conn.execute(
                f"SELECT {_THREAD_COLUMNS} FROM threads WHERE id = ?",
                (thread_id,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError("get_thread", e) from e
        if row is None:
            return None
        return self._row_to_thread(row)

    async def list_image_refs(self) -> list[tuple[int, str]]:
        """查询所有带图帖子的 (id, image_ref)，用于引用完整性校验"""
        cursor = await self._read_conn.execute(
            "SELECT id, image_ref FROM threads WHERE image_ref IS NOT NULL ORDER BY id ASC"
        )
        rows = await cursor.fetchall()
        return [(row[0], row[1]) for row in rows]

    @staticmethod
    def _row_to_thread(row: aiosqlite.Row) -> Thread:
        """将数据库行转换为 Thread 模型"""
        return Thread(
            id=row[0],
            title=row[1],
            message=row[2],
            image_ref=row[3],
            created_at=datetime.fromisoformat(row[4]),
        )
