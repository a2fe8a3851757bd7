"""Store Protocol 接口定义

定义 ThreadStore、AttachmentStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Protocol, runtime_checkable

from ..models.attachment import Attachment
from ..models.thread import Thread


@runtime_checkable
class ThreadStore(Protocol):
    """Thread 存储接口"""

    async def create(
        self,
        title: str,
        message: str,
        image_ref: str | None = None,
    ) -> Thread:
        """校验并创建帖子，分配下一个 id"""
        ...

    async def count(self) -> int:
        """当前帖子总数"""
        ...

    async def page(self, offset: int, limit: int) -> list[Thread]:
        """按规范顺序返回 [offset, offset+limit) 切片，越界返回空列表"""
        ...

    async def get_thread(self, thread_id: int) -> Thread | None:
        """根据 id 查询帖子"""
        ...


@runtime_checkable
class AttachmentStore(Protocol):
    """图片附件存储接口"""

    async def store(
        self,
        raw_bytes: bytes,
        declared_content_type: str | None = None,
    ) -> Attachment:
        """校验并持久化 JPEG，返回稳定引用"""
        ...

    async def get_attachment(self, ref: str) -> Attachment | None:
        """根据 ref 查询附件元数据"""
        ...

    async def get_content(self, ref: str) -> bytes | None:
        """读取附件原始字节"""
        ...
