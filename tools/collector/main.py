#!/usr/bin/env python3
"""
Blog content pipeline.

- dev   -> build the collection, serve it as a JSON API and rebuild on change
- build -> write view-models to <output_dir>/_content and copy article assets
- start -> serve a previous build from <output_dir>

Articles live in `content_dir` (see blog.config.yml) as Markdown or Jupyter
notebooks with a YAML front-matter block:
title, published_at, description?, tags?, cover_image?, cover_image_author?,
cover_image_link?, canonical_url?
"""

from __future__ import annotations

import argparse
import pathlib
import sys
from typing import List, Optional

from .config import SiteConfig, load_config
from .errors import BuildFailed, ConfigError
from .generate import generate
from .server import make_dev_server, make_static_server, serve
from .store import store
from .watch import Watcher, rebuild_into


def _print_failure(exc: BuildFailed) -> None:
    print(f"ERROR: {exc}", file=sys.stderr)
    for line in exc.diagnostics():
        print(f"  {line}", file=sys.stderr)


def cmd_build(config: SiteConfig, args) -> int:
    try:
        generate(config)
    except BuildFailed as exc:
        _print_failure(exc)
        return 1
    return 0


def cmd_dev(config: SiteConfig, args) -> int:
    rebuild_into(store, config)
    watcher = Watcher(
        config.content_path,
        lambda: rebuild_into(store, config),
        interval=args.interval,
    )
    watcher.start()
    try:
        serve(make_dev_server(store, config, port=args.port), "dev server")
    finally:
        watcher.stop()
    return 0


def cmd_start(config: SiteConfig, args) -> int:
    site_dir = config.output_path
    if not site_dir.exists():
        print(
            f"ERROR: {site_dir} missing, run `blog build` first",
            file=sys.stderr,
        )
        return 1
    serve(make_static_server(site_dir, args.port or config.port), "serving build")
    return 0


COMMANDS = {"dev": cmd_dev, "build": cmd_build, "start": cmd_start}


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="blog", description=__doc__.strip().splitlines()[0])
    parser.add_argument("command", choices=sorted(COMMANDS))
    parser.add_argument("--root", type=pathlib.Path, default=pathlib.Path.cwd(),
                        help="project root holding blog.config.yml")
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--interval", type=float, default=0.5,
                        help="dev: seconds between content polls")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.root)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return COMMANDS[args.command](config, args)


if __name__ == "__main__":
    sys.exit(main())
