"""CLI entry point for ShareLens."""

import argparse
import asyncio
import io
import json
import logging
import sys

from envelope import CODE_OK, failure, success
from errors import ResolveError
from resolver import resolve_by_id, resolve_by_share_text


async def run(args: argparse.Namespace) -> dict:
    try:
        if args.source:
            media = await resolve_by_id(args.source, args.id, timeout=args.timeout)
        else:
            media = await resolve_by_share_text(args.text, timeout=args.timeout)
    except ResolveError as exc:
        return failure(exc)
    return success(media)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ShareLens - 短视频分享链接去水印解析")
    parser.add_argument("text", nargs="?", help="分享文本或链接")
    parser.add_argument("--source", help="平台名称, 与 --id 一起使用 (douyin, kuaishou, ...)")
    parser.add_argument("--id", help="平台内的视频/笔记 ID")
    parser.add_argument("--timeout", type=float, default=None, help="整体超时秒数")
    parser.add_argument("--verbose", action="store_true", help="输出调试日志")
    return parser


def main(argv=None) -> int:
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    parser = build_parser()
    args = parser.parse_args(argv)
    if bool(args.source) != bool(args.id):
        parser.error("--source and --id must be given together")
    if not args.source and not args.text:
        parser.error("provide share text, or --source with --id")
    if args.source and args.text:
        parser.error("share text and --source/--id are mutually exclusive")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    payload = asyncio.run(run(args))
    print(json.dumps(payload, ensure_ascii=False, indent=2), flush=True)
    return 0 if payload["code"] == CODE_OK else 1


if __name__ == "__main__":
    sys.exit(main())
