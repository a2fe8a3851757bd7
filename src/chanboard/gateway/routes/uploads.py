"""图片下载路由

GET /uploads/{ref}.jpg: 返回附件原始字节（image/jpeg）。
"""

from chanboard.core.models import JPEG_CONTENT_TYPE
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse, Response

from ..deps import get_store_group

router = APIRouter()


@router.get("/uploads/{filename}")
async def get_upload(
    filename: str,
    store_group=Depends(get_store_group),
):
    """按附件引用返回图片内容"""
    ref = filename.removesuffix(".jpg")
    content = None
    if ref and ref != filename:
        content = await store_group.attachment_store.get_content(ref)

    if content is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "ATTACHMENT_NOT_FOUND",
                    "message": f"Attachment {filename} does not exist",
                }
            },
        )

    return Response(
        content=content,
        media_type=JPEG_CONTENT_TYPE,
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
