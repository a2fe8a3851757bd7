"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例和版面配置

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from chanboard.core.config import BoardConfig
from chanboard.core.store import StoreGroup
from fastapi import Request


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_board_config(request: Request) -> BoardConfig:
    """从 app.state 获取 BoardConfig 实例"""
    return request.app.state.board_config
