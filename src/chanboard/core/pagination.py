"""分页计算 -- 无状态，每次请求重新推导

total_pages = max(1, ceil(total / page_size))，空库也报告第 1/1 页。
越界页码（0、负数、超过 total_pages）静默钳制，不报错。
"""

from .exceptions import ConfigError
from .models.page import PageWindow


def paginate(total: int, page: int, page_size: int) -> PageWindow:
    """计算请求页的切片边界和页码元数据

    Args:
        total: 帖子总数
        page: 请求页码（1 起始，可越界）
        page_size: 每页条数

    Returns:
        PageWindow 实例

    Raises:
        ConfigError: page_size <= 0 或 total < 0
    """
    if page_size <= 0:
        raise ConfigError(f"page_size 必须为正数，实际为 {page_size}")
    if total < 0:
        raise ConfigError(f"total 不能为负数，实际为 {total}")

    # 整数向上取整，避免浮点误差
    total_pages = max(1, -(-total // page_size))
    current_page = min(max(page, 1), total_pages)

    return PageWindow(
        offset=(current_page - 1) * page_size,
        limit=page_size,
        current_page=current_page,
        total_pages=total_pages,
    )


def parse_page_param(raw: str | None) -> int:
    """解析 page 查询参数；缺失或非数字时返回 1"""
    if raw is None:
        return 1
    try:
        return int(raw.strip())
    except ValueError:
        return 1
