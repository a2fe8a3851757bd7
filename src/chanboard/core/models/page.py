"""列表视图模型

模板需要的数据形状：threads 序列 + current_page / total_pages。
空列表是合法结果（模板显示 "No threads found"），不是错误。
"""

from pydantic import BaseModel, Field

from .attachment import attachment_url
from .thread import Thread


class PageWindow(BaseModel):
    """分页窗口 -- paginate() 的计算结果"""

    offset: int = Field(ge=0, description="切片起始偏移")
    limit: int = Field(ge=1, description="切片最大条数")
    current_page: int = Field(ge=1, description="当前页（1 起始，已钳制）")
    total_pages: int = Field(ge=1, description="总页数，空库时为 1")

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


class ThreadView(BaseModel):
    """列表项"""

    id: int
    title: str
    message: str
    image_url: str | None = None

    @classmethod
    def from_thread(cls, thread: Thread) -> "ThreadView":
        return cls(
            id=thread.id,
            title=thread.title,
            message=thread.message,
            image_url=attachment_url(thread.image_ref) if thread.image_ref else None,
        )


class ThreadListing(BaseModel):
    """列表页响应"""

    threads: list[ThreadView] = Field(default_factory=list)
    current_page: int = Field(ge=1)
    total_pages: int = Field(ge=1)
    is_empty: bool = Field(description="预先计算的空列表标志，供模板分支")
