"""SQLite 数据库初始化

PRAGMA 配置 + 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# attachments 表 DDL
_ATTACHMENTS_DDL = """
CREATE TABLE IF NOT EXISTS attachments (
    ref           TEXT PRIMARY KEY,
    content_type  TEXT NOT NULL DEFAULT 'image/jpeg',
    size          INTEGER NOT NULL DEFAULT 0,
    hash          TEXT NOT NULL DEFAULT '',
    storage_ref   TEXT NOT NULL,
    created_at    TEXT NOT NULL
);
"""

# threads 表 DDL
# AUTOINCREMENT 保证 id 永不复用（sqlite_sequence 记录历史最大值）
_THREADS_DDL = """
CREATE TABLE IF NOT EXISTS threads (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT NOT NULL CHECK (length(title) BETWEEN 1 AND 75),
    message     TEXT NOT NULL CHECK (length(message) BETWEEN 1 AND 8000),
    image_ref   TEXT UNIQUE,
    created_at  TEXT NOT NULL,

    FOREIGN KEY (image_ref) REFERENCES attachments(ref) ON DELETE RESTRICT
);
"""

_THREADS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_threads_created_at ON threads(created_at);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await configure_connection(conn)

    # 创建表（attachments 先于 threads，外键依赖）
    await conn.execute(_ATTACHMENTS_DDL)
    await conn.execute(_THREADS_DDL)

    for idx_sql in _THREADS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def configure_connection(conn: aiosqlite.Connection) -> None:
    """设置连接级 PRAGMA（读连接也需要）"""
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
