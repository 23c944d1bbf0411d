"""yoloc web service.

Routes:
  GET /          run the checks for ?repo=&image= and show the output
  GET /healthz   liveness check
  GET /threadz   stack dump of every thread, for debugging hangs

Requests are served on threads (ThreadingHTTPServer) against one shared
Runtime; the commit cache is thread-safe and clone-and-scan is serialized
per repository, so concurrent requests for the same repo do not collide.
"""

from __future__ import annotations

import html
import io
import logging
import sys
import threading
import traceback
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlparse

from rich.console import Console

from yoloc_cli.render import Renderer
from yoloc_cli.runtime import Runtime
from yoloc_core.errors import YolocError
from yoloc_core.orchestrator import default_checks, run_cached

logger = logging.getLogger(__name__)

DEFAULT_REPO = "chainguard-dev/yolo"
DEFAULT_IMAGE = "tstromberg/yoloc"

_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body style="background:#000;color:#ccc;font-family:monospace">
<h1>{title}</h1>
<form method="GET" action="/">
  <label>repo <input name="repo" value="{repo}" size="40"></label>
  <label>image <input name="image" value="{image}" size="40"></label>
  <input type="submit" value="YOLO">
</form>
{out}
</body>
</html>
"""

_CODE_FORMAT = '<pre style="font-family:monospace">{code}</pre>'


def render_run(runtime: Runtime, repo: str, image: str, work: bool) -> str:
    """Run (or skip) the checks and return their output as an HTML fragment."""
    console = Console(record=True, file=io.StringIO(), force_terminal=True, width=120)
    renderer = Renderer(console)
    renderer.banner()

    if work:
        logger.info("Running checks for %s / %s", repo, image)
        config = runtime.new_config(repo, image)
        renderer.header(repo, image)
        try:
            summary = run_cached(default_checks(), config, runtime.persister, on_row=renderer.row)
            renderer.summary(summary)
        except YolocError as e:
            console.print(f"\nerror: {e}", style="bold red", markup=False)
    else:
        console.print("\nWaiting for submission ...")

    return console.export_html(inline_styles=True, code_format=_CODE_FORMAT)


def thread_dump() -> str:
    names = {t.ident: t.name for t in threading.enumerate()}
    out = []
    for ident, frame in sys._current_frames().items():
        out.append(f"Thread {names.get(ident, '?')} ({ident}):\n")
        out.extend(traceback.format_stack(frame))
        out.append("\n")
    return "".join(out)


def make_handler(runtime: Runtime) -> type[BaseHTTPRequestHandler]:
    class Handler(BaseHTTPRequestHandler):
        server_version = "yoloc"

        def log_message(self, format, *args):
            logger.info("%s: %s", self.address_string(), format % args)

        def _send(self, status: int, body: str = "", content_type: str = "text/plain; charset=utf-8"):
            data = body.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)

        def do_GET(self):
            url = urlparse(self.path)
            if url.path == "/healthz":
                self._send(200)
            elif url.path == "/threadz":
                self._send(200, thread_dump())
            elif url.path == "/":
                self._root(parse_qs(url.query, keep_blank_values=True))
            else:
                self._send(404, "not found\n")

        def _root(self, query: dict):
            repo = query.get("repo", [DEFAULT_REPO])[0]
            image = query.get("image", [DEFAULT_IMAGE])[0]
            work = "repo" in query or "image" in query
            try:
                out = render_run(runtime, repo, image, work)
            except Exception:
                logger.exception("Run for %s failed", repo)
                self._send(500, "internal error\n")
                return
            page = _PAGE.format(
                title="YOLO compliance checker",
                repo=html.escape(repo, quote=True),
                image=html.escape(image, quote=True),
                out=out,
            )
            self._send(200, page, "text/html; charset=utf-8")

    return Handler


def serve(runtime: Runtime, port: int, host: str = "") -> None:
    httpd = ThreadingHTTPServer((host, port), make_handler(runtime))
    logger.info("Listening on %s:%d ...", host or "*", port)
    try:
        httpd.serve_forever()
    finally:
        httpd.server_close()
