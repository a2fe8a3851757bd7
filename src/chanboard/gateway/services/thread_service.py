"""ThreadService -- 发帖/列表/详情业务逻辑

发帖流程：
1. 分块读取上传图片，累计超过大小上限即拒绝（Starlette 已将 multipart
   文件落入临时文件，分块读取只限制拷入内存的字节数）
2. 文本校验 -> 图片校验与落盘 -> 帖子写入（单事务）

列表流程：
1. ThreadStore.count() 取总数
2. paginate() 计算切片边界（越界页码钳制）
3. ThreadStore.page() 取切片
"""

import structlog
from chanboard.core.config import UPLOAD_CHUNK_SIZE, BoardConfig
from chanboard.core.exceptions import PayloadTooLargeError
from chanboard.core.models import ThreadListing, ThreadView
from chanboard.core.pagination import paginate
from chanboard.core.store import StoreGroup
from fastapi import UploadFile

log = structlog.get_logger()


class ThreadService:
    """帖子业务服务"""

    def __init__(self, store_group: StoreGroup, config: BoardConfig) -> None:
        self._stores = store_group
        self._config = config

    async def read_upload(self, upload: UploadFile | None) -> tuple[bytes, str | None] | None:
        """读取上传图片

        文件名为空视为未上传（浏览器未选择文件时仍会提交空字段）。

        Returns:
            (内容, 声明的 MIME 类型)，未上传时返回 None

        Raises:
            PayloadTooLargeError: 读取过程中超过大小上限
        """
        if upload is None or not (upload.filename or "").strip():
            return None

        limit = self._config.max_image_bytes
        if upload.size is not None and upload.size > limit:
            raise PayloadTooLargeError(limit)

        chunks: list[bytes] = []
        total = 0
        while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
            total += len(chunk)
            if total > limit:
                log.info("upload_rejected", reason="too_large", limit=limit)
                raise PayloadTooLargeError(limit)
            chunks.append(chunk)

        return b"".join(chunks), upload.content_type

    async def create_thread(
        self,
        title: str,
        message: str,
        upload: UploadFile | None = None,
    ) -> ThreadView:
        """创建帖子（发帖入口）"""
        image = await self.read_upload(upload)
        if image is None:
            thread = await self._stores.create_thread(title, message)
        else:
            image_bytes, declared_content_type = image
            thread = await self._stores.create_thread(
                title,
                message,
                image_bytes=image_bytes,
                declared_content_type=declared_content_type,
            )
        return ThreadView.from_thread(thread)

    async def list_threads(self, page: int) -> ThreadListing:
        """按页查询帖子列表"""
        total = await self._stores.thread_store.count()
        window = paginate(total, page, self._config.page_size)
        threads = await self._stores.thread_store.page(window.offset, window.limit)

        return ThreadListing(
            threads=[ThreadView.from_thread(t) for t in threads],
            current_page=window.current_page,
            total_pages=window.total_pages,
            is_empty=not threads,
        )

    async def get_thread(self, thread_id: int) -> ThreadView | None:
        """查询单个帖子"""
        thread = await self._stores.thread_store.get_thread(thread_id)
        if thread is None:
            return None
        return ThreadView.from_thread(thread)
