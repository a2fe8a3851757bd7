"""附件+帖子原子事务测试

测试内容：
1. 带图发帖：附件与帖子同时可见
2. 非 JPEG / 非法文本：不建帖、不落盘
3. 提交失败：回滚、删除文件、不消耗 id
"""

import aiosqlite
import pytest
from chanboard.core.exceptions import StorageError, UnsupportedFormatError, ValidationError


class TestCreateThreadWithImage:
    """StoreGroup.create_thread() 带图路径"""

    async def test_thread_and_attachment_committed_together(self, store_group, jpeg_bytes):
        thread = await store_group.create_thread(
            "with image", "look", image_bytes=jpeg_bytes, declared_content_type="image/jpeg"
        )

        assert thread.image_ref is not None
        stored = await store_group.thread_store.get_thread(thread.id)
        assert stored == thread
        assert await store_group.attachment_store.get_content(thread.image_ref) == jpeg_bytes

    async def test_non_jpeg_creates_no_thread(self, store_group, tmp_uploads_dir, png_bytes):
        """上传非 JPEG -> UnsupportedFormatError，无帖子"""
        with pytest.raises(UnsupportedFormatError):
            await store_group.create_thread(
                "bad image", "png", image_bytes=png_bytes, declared_content_type="image/jpeg"
            )

        assert await store_group.thread_store.count() == 0
        assert await store_group.attachment_store.count() == 0
        assert list(tmp_uploads_dir.iterdir()) == []

    async def test_invalid_text_writes_no_file(self, store_group, tmp_uploads_dir, jpeg_bytes):
        """文本非法时图片不落盘"""
        with pytest.raises(ValidationError):
            await store_group.create_thread("", "message", image_bytes=jpeg_bytes)

        assert list(tmp_uploads_dir.iterdir()) == []
        assert await store_group.attachment_store.count() == 0

    async def test_control_characters_rejected_before_staging(
        self, store_group, tmp_uploads_dir, jpeg_bytes
    ):
        """标题含 NUL -> 标题字段 ValidationError，而非存储错误"""
        with pytest.raises(ValidationError) as exc_info:
            await store_group.create_thread("\x00hello", "message", image_bytes=jpeg_bytes)

        assert exc_info.value.field == "title"
        assert list(tmp_uploads_dir.iterdir()) == []
        assert await store_group.thread_store.count() == 0

    async def test_commit_failure_rolls_back_everything(
        self, store_group, tmp_uploads_dir, jpeg_bytes, monkeypatch
    ):
        """帖子写入失败：附件元数据回滚、文件删除、id 不被消耗"""

        async def failing_insert(*args, **kwargs):
            raise aiosqlite.OperationalError("disk I/O error")

        monkeypatch.setattr(store_group.thread_store, "insert_thread", failing_insert)

        with pytest.raises(StorageError) as exc_info:
            await store_group.create_thread("title", "message", image_bytes=jpeg_bytes)
        assert exc_info.value.operation == "create_thread_with_image"

        assert await store_group.thread_store.count() == 0
        assert await store_group.attachment_store.count() == 0
        assert list(tmp_uploads_dir.iterdir()) == []

        monkeypatch.undo()
        thread = await store_group.create_thread("title", "message", image_bytes=jpeg_bytes)
        assert thread.id == 1

    async def test_attachment_cannot_be_shared(self, store_group, jpeg_bytes):
        """一个附件只能属于一个帖子"""
        first = await store_group.create_thread("one", "1", image_bytes=jpeg_bytes)

        with pytest.raises(ValidationError):
            await store_group.thread_store.create("two", "2", image_ref=first.image_ref)
        assert await store_group.thread_store.count() == 1

    async def test_no_image_path(self, store_group):
        """未上传图片时 image_ref 为 None"""
        thread = await store_group.create_thread("plain", "text only")
        assert thread.image_ref is None
