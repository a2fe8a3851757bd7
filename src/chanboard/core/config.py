"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、uploads 目录、分页大小、图片大小上限等可配置项。
非法配置（如 page_size <= 0）在启动时以 ConfigError 快速失败。
"""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from .exceptions import ConfigError

# 标题最大字符数
TITLE_MAX_LENGTH: int = 75

# 正文最大字符数
MESSAGE_MAX_LENGTH: int = 8000

# 上传流式读取块大小（字节）
UPLOAD_CHUNK_SIZE: int = 64 * 1024

_DEFAULT_PAGE_SIZE = 10
_DEFAULT_MAX_IMAGE_BYTES = 4 * 1024 * 1024


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("CHANBOARD_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "CHANBOARD_DB_PATH",
        str(_get_base_dir() / "sqlite" / "chanboard.db"),
    )


def get_uploads_dir() -> Path:
    """获取图片附件存储目录"""
    return Path(
        os.environ.get(
            "CHANBOARD_UPLOADS_DIR",
            str(_get_base_dir() / "uploads"),
        )
    )


class BoardConfig(BaseModel):
    """版面运行参数

    环境变量:
        CHANBOARD_PAGE_SIZE: 每页帖子数（默认 10）
        CHANBOARD_MAX_IMAGE_BYTES: 单张图片大小上限（默认 4 MiB）
        CHANBOARD_LIST_ORDER: 列表顺序 newest / oldest（默认 newest）
    """

    page_size: int = Field(default=_DEFAULT_PAGE_SIZE, description="每页帖子数")
    max_image_bytes: int = Field(
        default=_DEFAULT_MAX_IMAGE_BYTES,
        description="单张图片大小上限（字节）",
    )
    list_order: Literal["newest", "oldest"] = Field(
        default="newest",
        description="列表顺序：newest 新帖在前 / oldest 旧帖在前",
    )


def _read_int(env_var: str, default: int) -> int:
    raw = os.environ.get(env_var)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{env_var} 必须为整数，实际为 {raw!r}") from e


def load_board_config() -> BoardConfig:
    """从环境变量加载版面配置

    Raises:
        ConfigError: page_size / max_image_bytes 非正数，或 list_order 取值非法
    """
    page_size = _read_int("CHANBOARD_PAGE_SIZE", _DEFAULT_PAGE_SIZE)
    if page_size <= 0:
        raise ConfigError(f"CHANBOARD_PAGE_SIZE 必须为正数，实际为 {page_size}")

    max_image_bytes = _read_int("CHANBOARD_MAX_IMAGE_BYTES", _DEFAULT_MAX_IMAGE_BYTES)
    if max_image_bytes <= 0:
        raise ConfigError(
            f"CHANBOARD_MAX_IMAGE_BYTES 必须为正数，实际为 {max_image_bytes}"
        )

    list_order = os.environ.get("CHANBOARD_LIST_ORDER", "newest").strip().lower()
    if list_order not in ("newest", "oldest"):
        raise ConfigError(
            f"CHANBOARD_LIST_ORDER 仅支持 newest / oldest，实际为 {list_order!r}"
        )

    return BoardConfig(
        page_size=page_size,
        max_image_bytes=max_image_bytes,
        list_order=list_order,
    )
