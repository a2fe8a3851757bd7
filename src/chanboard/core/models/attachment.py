"""Attachment Domain Model

每张图片只绑定一个 Thread，创建后不可变。
hash 和 size 用于完整性校验。
"""

from datetime import datetime

from pydantic import BaseModel, Field

JPEG_CONTENT_TYPE = "image/jpeg"

# 视图层引用图片的 URL 前缀
UPLOADS_URL_PREFIX = "/uploads"


class Attachment(BaseModel):
    """Attachment 数据模型

    ref 为不透明句柄；url 是模板直接写入 img 标签的地址。
    """

    ref: str = Field(description="唯一标识，ULID 格式")
    content_type: str = Field(default=JPEG_CONTENT_TYPE, description="嗅探得到的 MIME 类型")
    size: int = Field(default=0, description="内容大小（字节）")
    hash: str = Field(default="", description="SHA-256 哈希")
    storage_ref: str = Field(description="文件存储路径")
    created_at: datetime = Field(description="创建时间戳")

    @property
    def url(self) -> str:
        return attachment_url(self.ref)


def attachment_url(ref: str) -> str:
    """由附件引用生成视图层 URL"""
    return f"{UPLOADS_URL_PREFIX}/{ref}.jpg"
