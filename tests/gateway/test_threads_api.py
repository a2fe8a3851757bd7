"""帖子 API 集成测试

测试内容：
1. 空库列表：空序列 + 第 1/1 页
2. multipart 发帖（纯文本 / 带图），图片可通过 image_url 取回
3. 25 帖分页与越界钳制
4. 非 JPEG / 空标题 / 超限图片的错误响应，且不建帖
5. 存储故障映射为 500 STORAGE_ERROR
"""

import aiosqlite
from chanboard.core.exceptions import StorageError
from httpx import AsyncClient

JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00" + b"\x11" * 64 + b"\xff\xd9"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


async def _create(client: AsyncClient, title: str, message: str, image: bytes | None = None):
    files = {"image": ("photo.jpg", image, "image/jpeg")} if image is not None else None
    return await client.post(
        "/api/threads",
        data={"title": title, "message": message},
        files=files,
    )


class TestListing:
    """GET /api/threads"""

    async def test_empty_listing(self, client: AsyncClient):
        """空库：空序列而非错误，第 1/1 页"""
        resp = await client.get("/api/threads")
        assert resp.status_code == 200
        assert resp.json() == {
            "threads": [],
            "current_page": 1,
            "total_pages": 1,
            "is_empty": True,
        }

    async def test_pagination_with_25_threads(self, client: AsyncClient):
        """25 帖每页 10：第 3 页 5 条，第 4 页钳制为第 3 页"""
        for i in range(1, 26):
            resp = await _create(client, f"thread {i}", f"message {i}")
            assert resp.status_code == 201

        page1 = (await client.get("/api/threads", params={"page": 1})).json()
        assert page1["current_page"] == 1
        assert page1["total_pages"] == 3
        assert [t["id"] for t in page1["threads"]] == list(range(25, 15, -1))

        page3 = (await client.get("/api/threads", params={"page": 3})).json()
        assert page3["current_page"] == 3
        assert [t["id"] for t in page3["threads"]] == [5, 4, 3, 2, 1]

        page4 = (await client.get("/api/threads", params={"page": 4})).json()
        assert page4 == page3

    async def test_bad_page_params(self, client: AsyncClient):
        """非数字 / 0 / 负数页码视为第 1 页"""
        await _create(client, "only", "thread")
        for raw in ["abc", "0", "-3", ""]:
            resp = await client.get("/api/threads", params={"page": raw})
            assert resp.status_code == 200
            assert resp.json()["current_page"] == 1


class TestCreateThread:
    """POST /api/threads"""

    async def test_create_text_thread(self, client: AsyncClient):
        resp = await _create(client, "Hello", "World")
        assert resp.status_code == 201
        assert resp.json() == {"id": 1, "title": "Hello", "message": "World", "image_url": None}

    async def test_create_with_image_and_fetch(self, client: AsyncClient):
        """带图发帖，image_url 可取回原始字节"""
        resp = await _create(client, "Pic", "See attached", JPEG)
        assert resp.status_code == 201
        image_url = resp.json()["image_url"]
        assert image_url.startswith("/uploads/") and image_url.endswith(".jpg")

        image_resp = await client.get(image_url)
        assert image_resp.status_code == 200
        assert image_resp.headers["content-type"] == "image/jpeg"
        assert image_resp.content == JPEG

        listing = (await client.get("/api/threads")).json()
        assert listing["threads"][0]["image_url"] == image_url

    async def test_non_jpeg_rejected(self, client: AsyncClient):
        """伪装成 JPEG 的 PNG -> 400，无帖子"""
        resp = await _create(client, "Fake", "png", PNG)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "UNSUPPORTED_FORMAT"

        listing = (await client.get("/api/threads")).json()
        assert listing["is_empty"] is True

    async def test_empty_image_rejected(self, client: AsyncClient):
        resp = await _create(client, "Empty", "image", b"")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "EMPTY_PAYLOAD"

    async def test_oversized_image_rejected(self, client: AsyncClient, test_app):
        limit = test_app.state.board_config.max_image_bytes
        resp = await _create(client, "Big", "image", JPEG + b"\x00" * limit)
        assert resp.status_code == 413
        assert resp.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"

    async def test_validation_errors(self, client: AsyncClient):
        """空标题 / 超长标题 / 空正文 / 控制字符 -> 400"""
        for title, message in [("", "m"), ("t" * 76, "m"), ("t", "   "), ("\x00hello", "m")]:
            resp = await _create(client, title, message)
            assert resp.status_code == 400
            assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

        listing = (await client.get("/api/threads")).json()
        assert listing["threads"] == []


class TestThreadDetail:
    """GET /api/threads/{id} 与 GET /uploads/{ref}.jpg"""

    async def test_get_thread(self, client: AsyncClient):
        created = (await _create(client, "Detail", "body")).json()
        resp = await client.get(f"/api/threads/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == created

    async def test_thread_not_found(self, client: AsyncClient):
        resp = await client.get("/api/threads/999")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "THREAD_NOT_FOUND"

    async def test_id_beyond_integer_range_not_found(self, client: AsyncClient):
        """超出 64 位整数的 id -> 404 而非 500"""
        await _create(client, "only", "thread")
        for raw in ["99999999999999999999", str(2**63), str(-(2**63) - 1)]:
            resp = await client.get(f"/api/threads/{raw}")
            assert resp.status_code == 404
            assert resp.json()["error"]["code"] == "THREAD_NOT_FOUND"

    async def test_upload_not_found(self, client: AsyncClient):
        for path in ["/uploads/01JNOTEXIST0000000000000000.jpg", "/uploads/noext", "/uploads/.jpg"]:
            resp = await client.get(path)
            assert resp.status_code == 404


class TestStorageFailures:
    """存储故障 -> 500 STORAGE_ERROR"""

    async def test_create_storage_failure(self, client: AsyncClient, test_app, monkeypatch):
        """写入失败：500，且回滚后不留帖子"""
        thread_store = test_app.state.store_group.thread_store

        async def failing_insert(*args, **kwargs):
            raise aiosqlite.OperationalError("disk I/O error")

        monkeypatch.setattr(thread_store, "insert_thread", failing_insert)

        resp = await _create(client, "title", "message")
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "STORAGE_ERROR"

        monkeypatch.undo()
        listing = (await client.get("/api/threads")).json()
        assert listing["is_empty"] is True

    async def test_listing_storage_failure(self, client: AsyncClient, test_app, monkeypatch):
        async def failing_count():
            raise StorageError("count_threads", aiosqlite.OperationalError("database is locked"))

        monkeypatch.setattr(test_app.state.store_group.thread_store, "count", failing_count)

        resp = await client.get("/api/threads")
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "STORAGE_ERROR"

    async def test_detail_storage_failure(self, client: AsyncClient, test_app, monkeypatch):
        async def failing_get(thread_id):
            raise StorageError("get_thread", aiosqlite.OperationalError("database is locked"))

        monkeypatch.setattr(test_app.state.store_group.thread_store, "get_thread", failing_get)

        resp = await client.get("/api/threads/1")
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "STORAGE_ERROR"
