"""JPEG 内容嗅探

只看字节，不看客户端声明的 MIME 类型或文件名。
"""

# SOI 标记 + 下一个段标记的前导 0xFF
_JPEG_MAGIC = b"\xff\xd8\xff"


def is_jpeg(data: bytes) -> bool:
    """判断内容是否为 JPEG

    要求 SOI (FFD8) 之后紧跟一个段标记 (FFxx，xx 不为 00/FF)。
    """
    if len(data) < 4 or not data.startswith(_JPEG_MAGIC):
        return False
    return data[3] not in (0x00, 0xFF)
