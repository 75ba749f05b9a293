"""Development server for mdsite.

Serves the rendered site with live reload for local authoring:
- ``/`` and ``/index.html`` are rendered on every request through the preview
  entry point, so the index page always reflects the current sources.
- Other HTML files come from the output directory with a reload script injected.
- Markdown sources and templates are watched; changes trigger a full render
  followed by a websocket reload broadcast.

Key classes:
- DevServer: Main class for running the development server.
- _ReloadHandler: HTTP request handler that injects the reload script.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
import threading
import time
from collections.abc import Callable
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import click
import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import render_preview, render_site
from .config import ConfigError, SiteConfig
from .content import MARKDOWN_SUFFIX, BuildError

logger = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 4000
PREVIEW_PATHS = frozenset({"/", "/index.html"})


def _inject_reload(content: str, script: str) -> str:
    if "</body>" in content:
        return content.replace("</body>", f"{script}</body>", 1)
    return content + script


class _ReloadHandler(SimpleHTTPRequestHandler):
    """HTTP request handler that injects a live reload script into HTML pages.

    Attributes:
        reload_script: JavaScript snippet reloading the page on websocket message.
        render_index: Callable rendering the preview page for a URL path.
    """

    reload_script_template = """
    <script>
    (() => {{
      const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
      ws.onmessage = (event) => {{
        const data = JSON.parse(event.data || '{{}}');
        if (data.type === 'reload') location.reload();
      }};
    }})();
    </script>
    """
    reload_script = reload_script_template.format(ws_port=DEFAULT_HTTP_PORT + 1)
    render_index: Callable[[str], str] | None = None

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        # Never expose directory listings; treat as missing content.
        return self._serve_404()

    def _send_html(self, content: str, status: int = 200) -> None:
        encoded = _inject_reload(content, self.reload_script).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            self._send_html(error_page.read_text(encoding="utf-8"), status=404)
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        request_path = self.path.split("?", 1)[0].split("#", 1)[0]
        if request_path in PREVIEW_PATHS and self.render_index is not None:
            try:
                content = self.render_index(request_path)
            except (BuildError, ConfigError) as exc:
                logger.error("Preview failed: %s", exc)
                self.send_error(500, "Preview failed", str(exc))
                return None
            self._send_html(content)
            return None

        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            index_path = path_obj / "index.html"
            if not index_path.exists():
                return self._serve_404()
            path_obj = index_path
        elif not path_obj.exists():
            html_path = path_obj.with_name(path_obj.name + ".html")
            if not html_path.exists():
                return self._serve_404()
            path_obj = html_path

        if path_obj.suffix == ".html":
            self._send_html(path_obj.read_text(encoding="utf-8"))
            return None
        return super().send_head()


class DevServer:
    """Development server with live reload functionality.

    Attributes:
        config: Resolved site configuration.
        http_port: Port for the HTTP server.
        ws_port: Port for websocket connections.
        _observer: File system observer for changes.
        _ws_clients: Set of connected websocket clients.
        _loop: Event loop for websocket handling.
    """

    def __init__(
        self,
        config: SiteConfig,
        http_port: int | None = None,
        ws_port: int | None = None,
    ):
        self.config = config
        self.http_port = int(http_port or DEFAULT_HTTP_PORT)
        self.ws_port = ws_port if ws_port is not None else self.http_port + 1
        self._reload_script = _ReloadHandler.reload_script_template.format(
            ws_port=self.ws_port
        )
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._rebuilding = False
        self._last_rebuild_at = 0.0
        self._last_signature: tuple | None = None
        self._debounce_seconds = 0.05

    @property
    def template_paths(self) -> list[Path]:
        return [
            p
            for p in (
                self.config.html_template,
                self.config.feed_template,
                self.config.sitemap_template,
            )
            if p is not None
        ]

    def start(self) -> None:  # pragma: no cover - integration path
        render_site(self.config)
        self._last_signature = self._compute_signature()
        threading.Thread(target=self._start_http, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()
        self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def render_index(self, url: str) -> str:
        """Render the preview page for a request path."""
        template = self.config.html_template.read_text(encoding="utf-8")
        return render_preview(template, url, self.config)

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script, "render_index": staticmethod(self.render_index)},
        )
        handler = functools.partial(handler_cls, directory=str(self.config.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        click.echo(f"Serving {self.config.output_dir} at http://localhost:{self.http_port}")
        httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            logger.error("WebSocket server failed to start (port %s): %s", self.ws_port, exc)

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()  # Run forever

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self):
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str):
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except Exception:
                logger.debug("Dropping websocket client %r", ws)
                stale.add(ws)
        for ws in stale:
            self._ws_clients.discard(ws)

    def _start_watcher(self) -> None:  # pragma: no cover - integration path
        handler = _ChangeHandler(self)
        observer = Observer()
        observer.schedule(handler, str(self.config.markdown_dir), recursive=True)
        for folder in {p.parent for p in self.template_paths}:
            if folder.exists():
                observer.schedule(handler, str(folder), recursive=False)
        observer.start()
        self._observer = observer

    def is_source(self, path: Path) -> bool:
        """Return True for markdown sources and template files."""
        if path in self.template_paths:
            return True
        if path.suffix != MARKDOWN_SUFFIX:
            return False
        try:
            path.relative_to(self.config.markdown_dir)
        except ValueError:
            return False
        return True

    def rebuild(self) -> None:
        now = time.time()
        if self._rebuilding or (now - self._last_rebuild_at) < self._debounce_seconds:
            return
        signature = self._compute_signature()
        if signature is not None and signature == self._last_signature:
            return
        self._rebuilding = True
        try:
            click.echo("Change detected; rebuilding...")
            try:
                render_site(self.config)
            except (BuildError, ConfigError) as exc:
                logger.error("Rebuild failed: %s", exc)
                return
            self._last_signature = signature
            self._broadcast_reload()
        finally:
            self._rebuilding = False
            self._last_rebuild_at = time.time()

    def _compute_signature(self) -> tuple | None:
        entries: list[tuple] = []
        candidates = list(self.template_paths)
        if self.config.markdown_dir.exists():
            candidates.extend(sorted(self.config.markdown_dir.rglob(f"*{MARKDOWN_SUFFIX}")))
        for path in candidates:
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((str(path), stat.st_mtime_ns, stat.st_size))
        return tuple(entries) if entries else None


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        if not self.server.is_source(Path(event.src_path)):
            return
        self.server.rebuild()
