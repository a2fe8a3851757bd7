"""版面核心异常体系

用户可修正的输入错误（ValidationError / UnsupportedFormatError /
EmptyPayloadError / PayloadTooLargeError）由核心层以类型化异常返回，
ConfigError 在启动时致命，StorageError 包装底层 I/O 故障。
"""


class BoardError(Exception):
    """版面核心基础异常"""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述（可直接展示给调用方）
            recoverable: 是否可由调用方重试恢复
        """
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class ValidationError(BoardError):
    """标题/正文为空或超长"""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message, recoverable=False)
        self.field = field


class UnsupportedFormatError(BoardError):
    """上传内容不是 JPEG（按内容嗅探判断，不信任客户端声明的 MIME）"""

    def __init__(self, declared_content_type: str | None = None) -> None:
        super().__init__("Only JPEG images are allowed", recoverable=False)
        self.declared_content_type = declared_content_type


class EmptyPayloadError(BoardError):
    """提交了图片字段但内容为空"""

    def __init__(self) -> None:
        super().__init__("Uploaded image is empty", recoverable=False)


class PayloadTooLargeError(BoardError):
    """图片超过大小上限"""

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(
            f"Uploaded image exceeds the {limit_bytes} byte limit",
            recoverable=False,
        )
        self.limit_bytes = limit_bytes


class ConfigError(BoardError):
    """配置非法 -- 启动时快速失败"""

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=False)


class StorageError(BoardError):
    """存储层 I/O 故障

    读操作可由调用方自行决定是否重试；写操作失败时已回滚，不会留下孤儿数据。
    """

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 失败的存储操作名称
            original_error: 原始异常
        """
        super().__init__(
            f"存储操作失败: {operation} -- {original_error}",
            recoverable=True,
        )
        self.operation = operation
        self.original_error = original_error
