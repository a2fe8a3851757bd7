"""CLI 入口模块 -- python -m chanboard.core <command>

支持的命令：
  stats               输出帖子与附件数量
  verify-attachments  校验所有 image_ref 可解析且内容 hash 一致
"""

import asyncio
import sys

from .config import get_db_path, get_uploads_dir, load_board_config


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m chanboard.core <command>")
        print("命令:")
        print("  stats               输出帖子与附件数量")
        print("  verify-attachments  校验附件引用完整性")
        sys.exit(1)

    command = sys.argv[1]

    if command == "stats":
        asyncio.run(stats())
    elif command == "verify-attachments":
        problems = asyncio.run(verify_attachments())
        sys.exit(1 if problems else 0)
    else:
        print(f"未知命令: {command}")
        print("可用命令: stats, verify-attachments")
        sys.exit(1)


async def stats() -> None:
    """输出帖子与附件数量"""
    from .store import create_store_group

    config = load_board_config()
    store_group = await create_store_group(
        get_db_path(), get_uploads_dir(), config.max_image_bytes
    )
    try:
        threads = await store_group.thread_store.count()
        attachments = await store_group.attachment_store.count()
        print(f"threads: {threads}")
        print(f"attachments: {attachments}")
    finally:
        await store_group.close()


async def verify_attachments() -> list[str]:
    """校验所有帖子的 image_ref 均指向完整的附件

    Returns:
        问题描述列表，空列表表示全部正常
    """
    from .store import create_store_group
    from .store.attachment_store import compute_hash_and_size

    config = load_board_config()
    store_group = await create_store_group(
        get_db_path(), get_uploads_dir(), config.max_image_bytes
    )
    problems: list[str] = []
    try:
        refs = await store_group.thread_store.list_image_refs()
        for thread_id, ref in refs:
            attachment = await store_group.attachment_store.get_attachment(ref)
            if attachment is None:
                problems.append(f"thread {thread_id}: 附件元数据缺失 ({ref})")
                continue
            content = await store_group.attachment_store.get_content(ref)
            if content is None:
                problems.append(f"thread {thread_id}: 附件文件缺失 ({ref})")
                continue
            hash_hex, _ = compute_hash_and_size(content)
            if hash_hex != attachment.hash:
                problems.append(f"thread {thread_id}: 附件 hash 不一致 ({ref})")
    finally:
        await store_group.close()

    for problem in problems:
        print(problem)
    print(f"已检查 {len(refs)} 个附件引用，发现 {len(problems)} 个问题")
    return problems


if __name__ == "__main__":
    main()
