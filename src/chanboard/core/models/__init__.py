"""chanboard Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .attachment import JPEG_CONTENT_TYPE, UPLOADS_URL_PREFIX, Attachment, attachment_url
from .page import PageWindow, ThreadListing, ThreadView
from .thread import Thread

__all__ = [
    # Thread
    "Thread",
    # Attachment
    "Attachment",
    "attachment_url",
    "JPEG_CONTENT_TYPE",
    "UPLOADS_URL_PREFIX",
    # 列表视图
    "PageWindow",
    "ThreadView",
    "ThreadListing",
]
