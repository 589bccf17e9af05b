#!/usr/bin/env python3
"""
Synapse command line.

  synapse parse "Submit report tomorrow at 3pm #work urgent"
  synapse serve --port 8000
"""

from __future__ import annotations

import argparse
import json
from typing import List, Optional

from synapse.config import configure_logging, load_settings
from synapse.task_parser import parse_task_input


def cmd_parse(args: argparse.Namespace) -> int:
    text = " ".join(args.text).strip()
    if not text:
        print("Nothing to parse. Write a task, e.g. \"call mom tomorrow at 5pm\".")
        return 1
    parsed = parse_task_input(text)
    print(json.dumps(parsed.to_dict(), ensure_ascii=False, indent=2))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = load_settings()
    configure_logging(settings)
    uvicorn.run("synapse.app:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="synapse", description="Synapse wellness and productivity companion")
    sub = parser.add_subparsers(dest="command", required=True)

    parse = sub.add_parser("parse", help="parse a task line and print the extracted fields")
    parse.add_argument("text", nargs="+")
    parse.set_defaults(func=cmd_parse)

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
