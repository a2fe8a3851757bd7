"""AttachmentStore SQLite + 文件系统实现

元数据写 SQLite，图片字节写 uploads 目录下的 {ref}.jpg。
文件先写临时文件再原子改名；元数据提交失败时删除文件，不留孤儿。
文件写入不持有 write_lock，多个上传可并行落盘。
"""

import asyncio
import hashlib
import os
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite
import structlog
from ulid import ULID

from ..exceptions import (
    EmptyPayloadError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedFormatError,
)
from ..jpeg import is_jpeg
from ..models.attachment import JPEG_CONTENT_TYPE, Attachment

log = structlog.get_logger()

_ATTACHMENT_COLUMNS = "ref, content_type, size, hash, storage_ref, created_at"


def compute_hash_and_size(content: bytes) -> tuple[str, int]:
    """计算 SHA-256 hash 和内容大小

    Args:
        content: 原始内容字节

    Returns:
        (sha256_hex, size_bytes) 元组
    """
    return hashlib.sha256(content).hexdigest(), len(content)


def _write_file_atomic(path: Path, content: bytes) -> None:
    tmp_path = path.with_name(path.name + ".part")
    with open(tmp_path, "wb") as f:
        f.write(content)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)


class SqliteAttachmentStore:
    """AttachmentStore 的 SQLite + 文件系统实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        uploads_dir: Path,
        max_bytes: int,
        read_conn: aiosqlite.Connection | None = None,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._read_conn = read_conn or conn
        self._uploads_dir = uploads_dir
        self._max_bytes = max_bytes
        self._write_lock = write_lock or asyncio.Lock()

    @property
    def uploads_dir(self) -> Path:
        return self._uploads_dir

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def validate(self, raw_bytes: bytes, declared_content_type: str | None) -> None:
        """校验上传内容

        Raises:
            EmptyPayloadError: 内容为空
            PayloadTooLargeError: 超过大小上限
            UnsupportedFormatError: 内容嗅探不是 JPEG
        """
        if not raw_bytes:
            raise EmptyPayloadError()
        if len(raw_bytes) > self._max_bytes:
            raise PayloadTooLargeError(self._max_bytes)
        if not is_jpeg(raw_bytes):
            log.info(
                "attachment_rejected",
                reason="not_jpeg",
                declared_content_type=declared_content_type,
                size=len(raw_bytes),
            )
            raise UnsupportedFormatError(declared_content_type)
        if declared_content_type and declared_content_type.lower() != JPEG_CONTENT_TYPE:
            # 以内容嗅探为准，声明类型仅记录
            log.warning(
                "attachment_declared_type_mismatch",
                declared_content_type=declared_content_type,
                detected_content_type=JPEG_CONTENT_TYPE,
            )

    async def prepare(
        self,
        raw_bytes: bytes,
        declared_content_type: str | None = None,
    ) -> Attachment:
        """校验并写入文件（不写元数据）

        调用方须随后 insert_metadata + commit，失败时调用 discard。
        """
        self.validate(raw_bytes, declared_content_type)

        hash_hex, size = compute_hash_and_size(raw_bytes)
        ref = str(ULID())
        file_path = self._get_attachment_path(ref)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(_write_file_atomic, file_path, raw_bytes)
        except OSError as e:
            log.error("attachment_write_failed", ref=ref, error=str(e))
            raise StorageError("write_attachment", e) from e

        return Attachment(
            ref=ref,
            content_type=JPEG_CONTENT_TYPE,
            size=size,
            hash=hash_hex,
            storage_ref=str(file_path),
            created_at=datetime.now(UTC),
        )

    async def insert_metadata(self, attachment: Attachment) -> None:
        """写入附件元数据

        注意：此方法不自动提交事务，需由调用方持有 write_lock 并管理事务。
        """
        await self._conn.execute(
            f"INSERT INTO attachments ({_ATTACHMENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                attachment.ref,
                attachment.content_type,
                attachment.size,
                attachment.hash,
                attachment.storage_ref,
                attachment.created_at.isoformat(),
            ),
        )

    async def discard(self, attachment: Attachment) -> None:
        """删除未提交附件的文件"""
        try:
            await asyncio.to_thread(Path(attachment.storage_ref).unlink, missing_ok=True)
        except OSError as e:
            log.warning("attachment_discard_failed", ref=attachment.ref, error=str(e))

    async def store(
        self,
        raw_bytes: bytes,
        declared_content_type: str | None = None,
    ) -> Attachment:
        """校验并持久化 JPEG（文件 + 元数据），返回附件

        Raises:
            EmptyPayloadError / PayloadTooLargeError / UnsupportedFormatError: 上传非法
            StorageError: 写入失败（文件已清理、事务已回滚）
        """
        attachment = await self.prepare(raw_bytes, declared_content_type)

        async with self._write_lock:
            try:
                await self.insert_metadata(attachment)
                await self._conn.commit()
            except aiosqlite.Error as e:
                await self._conn.rollback()
                await self.discard(attachment)
                log.error("attachment_store_failed", ref=attachment.ref, error=str(e))
                raise StorageError("store_attachment", e) from e

        log.info("attachment_stored", ref=attachment.ref, size=attachment.size)
        return attachment

    async def get_attachment(self, ref: str) -> Attachment | None:
        """根据 ref 查询附件元数据"""
        try:
            cursor = await self._read_conn.execute(
                f"SELECT {_ATTACHMENT_COLUMNS} FROM attachments WHERE ref = ?",
                (ref,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError("get_attachment", e) from e
        if row is None:
            return None
        return self._row_to_attachment(row)

    async def get_content(self, ref: str) -> bytes | None:
        """读取附件原始字节；元数据或文件不存在时返回 None"""
        attachment = await self.get_attachment(ref)
        if attachment is None:
            return None

        file_path = Path(attachment.storage_ref)
        try:
            return await asyncio.to_thread(file_path.read_bytes)
        except FileNotFoundError:
            log.error("attachment_file_missing", ref=ref, storage_ref=attachment.storage_ref)
            return None
        except OSError as e:
            raise StorageError("read_attachment", e) from e

    async def count(self) -> int:
        """已存储附件总数"""
        cursor = await self._read_conn.execute("SELECT COUNT(*) FROM attachments")
        row = await cursor.fetchone()
        return row[0] if row else 0

    def _get_attachment_path(self, ref: str) -> Path:
        """获取附件文件存储路径"""
        return self._uploads_dir / f"{ref}.jpg"

    @staticmethod
    def _row_to_attachment(row: aiosqlite.Row) -> Attachment:
        """将数据库行转换为 Attachment 模型"""
        return Attachment(
            ref=row[0],
            content_type=row[1],
            size=row[2],
            hash=row[3],
            storage_ref=row[4],
            created_at=datetime.fromisoformat(row[5]),
        )
