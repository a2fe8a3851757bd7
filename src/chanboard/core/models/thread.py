"""Thread Domain Model

threads 表只追加：id 由 SQLite AUTOINCREMENT 分配，严格单调递增且永不复用。
title / message 在入库前已完成校验和首尾空白裁剪。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Thread(BaseModel):
    """Thread 数据模型

    id 在创建时分配，此后不可变。
    image_ref 为 None 表示未上传图片；否则必定能解析到已存储的附件。
    """

    id: int = Field(description="唯一标识，严格单调递增")
    title: str = Field(description="标题（1-75 字符）")
    message: str = Field(description="正文（1-8000 字符）")
    image_ref: str | None = Field(default=None, description="附件引用，ULID 格式")
    created_at: datetime = Field(description="创建时间戳")
