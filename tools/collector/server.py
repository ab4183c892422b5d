from __future__ import annotations

import functools
import http.server
import json
import mimetypes
import pathlib
from typing import Any, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlparse

from .assets import article_assets
from .config import SiteConfig
from .errors import NotFound
from .render import LISTING, PAGE, render_article
from .store import CollectionStore


class ContentAPIHandler(http.server.BaseHTTPRequestHandler):
    """JSON API over the store's current collection, plus article assets.

    Each request reads ``store.current()`` once, so a rebuild swapping the
    collection mid-request cannot mix two builds in one response.
    """

    store: CollectionStore
    config: SiteConfig

    def _send_json(self, status: int, data: Any) -> None:
        payload = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def _send_bytes(self, data: bytes, name: str) -> None:
        ctype = mimetypes.guess_type(name)[0] or "application/octet-stream"
        self.send_response(200)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _not_found(self, message: str) -> None:
        self._send_json(404, {"error": "not_found", "message": message})

    def do_GET(self) -> None:
        url = urlparse(self.path)
        parts = [unquote(p) for p in url.path.strip("/").split("/") if p]
        try:
            collection = self.store.current()
        except RuntimeError:
            self._send_json(503, {"error": "unavailable", "message": "content not built yet"})
            return

        try:
            status, data = self._route(collection, parts, parse_qs(url.query))
        except NotFound as exc:
            self._not_found(exc.message)
            return
        if isinstance(data, tuple):
            self._send_bytes(*data)
        else:
            self._send_json(status, data)

    def _route(self, collection, parts, query) -> Tuple[int, Any]:
        cfg = self.config
        if parts[:2] == ["api", "articles"]:
            if len(parts) == 2:
                return 200, [render_article(a, LISTING, cfg) for a in collection.all()]
            if len(parts) == 3:
                article = collection.by_slug(parts[2])
                return 200, render_article(article, PAGE, cfg, collection=collection)
        elif parts[:2] == ["api", "tags"]:
            if len(parts) == 2:
                return 200, collection.tags()
            if len(parts) == 3:
                return 200, [render_article(a, LISTING, cfg) for a in collection.by_tag(parts[2])]
        elif parts[:2] == ["api", "search"] and len(parts) == 2:
            q = (query.get("q") or [""])[0]
            return 200, [render_article(a, LISTING, cfg) for a in collection.search(q)]
        else:
            asset = self._asset(collection, parts)
            if asset is not None:
                return 200, asset
        raise NotFound("/".join(parts))

    def _asset(self, collection, parts) -> Optional[Tuple[bytes, str]]:
        base = [p for p in self.config.asset_base.split("/") if p]
        if parts[: len(base)] != base or len(parts) < len(base) + 2:
            return None
        slug = parts[len(base)]
        rel = "/".join(parts[len(base) + 1 :])
        article = collection.by_slug(slug)
        for ref in article_assets(article, self.config.asset_base):
            if ref.rel == rel:
                data = ref.data if ref.data is not None else ref.source.read_bytes()
                return data, rel
        return None

    def log_message(self, format, *args):
        print(f"- {self.address_string()} {format % args}")


def make_dev_server(
    store: CollectionStore, config: SiteConfig, port: Optional[int] = None
) -> http.server.ThreadingHTTPServer:
    handler = type(
        "BoundContentAPIHandler",
        (ContentAPIHandler,),
        {"store": store, "config": config},
    )
    if port is None:
        port = config.port
    return http.server.ThreadingHTTPServer(("localhost", port), handler)


def make_static_server(
    site_dir: pathlib.Path, port: int
) -> http.server.ThreadingHTTPServer:
    handler = functools.partial(
        http.server.SimpleHTTPRequestHandler, directory=str(site_dir)
    )
    return http.server.ThreadingHTTPServer(("localhost", port), handler)


def serve(httpd: http.server.ThreadingHTTPServer, label: str) -> None:
    host, port = httpd.server_address[:2]
    print(f"✓ {label} at http://{host}:{port}/")
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        print("- shutting down server")
    finally:
        httpd.server_close()
