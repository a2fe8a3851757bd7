"""帖子路由

GET  /api/threads?page=N: 分页列表（page 缺失或非数字视为 1，越界钳制）。
POST /api/threads: multipart 发帖（title / message / 可选 image）。
GET  /api/threads/{thread_id}: 单帖查询。
"""

import structlog
from chanboard.core.exceptions import (
    BoardError,
    EmptyPayloadError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedFormatError,
    ValidationError,
)
from chanboard.core.models import ThreadListing, ThreadView
from chanboard.core.pagination import parse_page_param
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from starlette.responses import JSONResponse

from ..deps import get_board_config, get_store_group
from ..services.thread_service import ThreadService

log = structlog.get_logger()

router = APIRouter()


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def _board_error_response(e: BoardError) -> JSONResponse:
    """将核心层异常映射为 HTTP 错误响应"""
    if isinstance(e, ValidationError):
        return _error_response(400, "VALIDATION_ERROR", e.message)
    if isinstance(e, UnsupportedFormatError):
        return _error_response(400, "UNSUPPORTED_FORMAT", e.message)
    if isinstance(e, EmptyPayloadError):
        return _error_response(400, "EMPTY_PAYLOAD", e.message)
    if isinstance(e, PayloadTooLargeError):
        return _error_response(413, "PAYLOAD_TOO_LARGE", e.message)
    if isinstance(e, StorageError):
        log.error("storage_error", operation=e.operation, error=str(e.original_error))
        return _error_response(500, "STORAGE_ERROR", "Failed to create thread")
    return _error_response(500, "INTERNAL_ERROR", e.message)


@router.get("/api/threads", response_model=ThreadListing)
async def list_threads(
    page: str | None = Query(default=None, description="页码，1 起始"),
    store_group=Depends(get_store_group),
    config=Depends(get_board_config),
):
    """分页查询帖子列表"""
    service = ThreadService(store_group, config)
    try:
        return await service.list_threads(parse_page_param(page))
    except StorageError as e:
        log.error("storage_error", operation=e.operation, error=str(e.original_error))
        return _error_response(500, "STORAGE_ERROR", "Failed to load threads")


@router.post("/api/threads", response_model=ThreadView, status_code=201)
async def create_thread(
    title: str = Form(default=""),
    message: str = Form(default=""),
    image: UploadFile | None = File(default=None),
    store_group=Depends(get_store_group),
    config=Depends(get_board_config),
):
    """发帖

    - 成功返回 201 + 新帖
    - 文本/图片非法返回 400，图片超限返回 413
    """
    service = ThreadService(store_group, config)
    try:
        view = await service.create_thread(title, message, image)
    except BoardError as e:
        return _board_error_response(e)

    return JSONResponse(status_code=201, content=view.model_dump())


@router.get("/api/threads/{thread_id}", response_model=ThreadView)
async def get_thread(
    thread_id: int,
    store_group=Depends(get_store_group),
    config=Depends(get_board_config),
):
    """查询单个帖子"""
    service = ThreadService(store_group, config)
    try:
        view = await service.get_thread(thread_id)
    except StorageError as e:
        log.error("storage_error", operation=e.operation, error=str(e.original_error))
        return _error_response(500, "STORAGE_ERROR", "Failed to load thread")

    if view is None:
        return _error_response(
            404,
            "THREAD_NOT_FOUND",
            f"Thread with id {thread_id} does not exist",
        )
    return view
