from __future__ import annotations

import argparse
from typing import Optional

from pivifeed.config import get_settings
from pivifeed.logging_config import configure_logging
from pivifeed.services.feed_service import STATUS_INTERNAL_FAULT, generate_feed

from .pipeline import write_feed_file


def run_generate(*, out_path: str, max_pages: Optional[int] = None) -> int:
    settings = get_settings()
    if max_pages is not None:
        settings = settings.model_copy(update={"max_pages": max_pages})
    result = generate_feed(settings)
    if result.status == STATUS_INTERNAL_FAULT:
        return 2
    if not result.ok:
        return 1
    path = write_feed_file(result.xml, out_path)
    if path is None:
        return 2
    print(path)
    return 0


def main(argv: Optional[list] = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Pivigames RSS feed tasks")
    parser.add_argument("--log-level", default=settings.log_level, help="Root log level")
    sub = parser.add_subparsers(dest="cmd", required=True)

    gen = sub.add_parser("generate", help="Scrape the site once and write the RSS file")
    gen.add_argument("--out", default=settings.output_path, help="Output path for the RSS document")
    gen.add_argument("--max-pages", type=int, default=None, help="Override the number of listing pages")

    srv = sub.add_parser("serve", help="Serve /rss.xml over HTTP")
    srv.add_argument("--host", default=settings.host)
    srv.add_argument("--port", type=int, default=settings.port)

    args = parser.parse_args(argv)
    configure_logging(args.log_level, settings.log_json)

    if args.cmd == "generate":
        if args.max_pages is not None and args.max_pages < 1:
            parser.error("--max-pages must be at least 1")
        return run_generate(out_path=args.out, max_pages=args.max_pages)

    if args.cmd == "serve":
        import uvicorn

        uvicorn.run("pivifeed.main:app", host=args.host, port=args.port)
        return 0

    parser.error("unknown command")


if __name__ == "__main__":
    raise SystemExit(main())
