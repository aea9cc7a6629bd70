"""
Output Stage: writing the bundle to disk and serving it during development.
"""

import json
import os
import tempfile
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from bundler.errors import OutputWriteError

INDEX_HTML = """<!doctype html>
<html>
  <head>
    <meta charset="utf-8">
    <title>minipack</title>
  </head>
  <body>
    <script src="/bundle.js"></script>
  </body>
</html>
"""


def _stage(path, text):
    """Write ``text`` to a temporary file beside ``path``; returns its name."""
    directory = os.path.dirname(path) or "."
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".minipack-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
    except BaseException:
        os.remove(tmp_path)
        raise
    return tmp_path


def write_bundle(path, code, source_map=None):
    """
    Write ``code`` to ``path``, and ``source_map`` to ``path + ".map"``.

    Both files are staged next to their targets first and then moved into
    place, bundle before map, so a failed write never leaves a truncated
    bundle or a map without its bundle. Returns the list of written paths.

    Raises:
        OutputWriteError: On any file system error
    """
    targets = []
    staged = {}
    try:
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        if source_map is not None:
            map_path = path + ".map"
            code = code + f"//# sourceMappingURL={os.path.basename(map_path)}\n"
            targets = [(path, code), (map_path, json.dumps(source_map))]
        else:
            targets = [(path, code)]
        for target, text in targets:
            staged[target] = _stage(target, text)
        for target, _ in targets:
            os.replace(staged[target], target)
            del staged[target]
    except OSError as e:
        raise OutputWriteError(
            f"Cannot write bundle: {e.strerror or e}",
            path=path,
            suggestion="Check that the output directory is writable",
        )
    finally:
        for tmp_path in staged.values():
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
    return [target for target, _ in targets]


class NoCacheHandler(BaseHTTPRequestHandler):
    """Serves the in-memory bundle; every response forbids caching."""

    # Filled in by DevServer: request path -> (content type, body bytes)
    routes = {}

    def end_headers(self):
        self.send_header("Cache-Control", "no-store")
        self.send_header("Pragma", "no-cache")
        self.send_header("Expires", "0")
        super().end_headers()

    def do_GET(self):
        route = self.routes.get(self.path.split("?", 1)[0])
        if route is None:
            self.send_error(404, "Not Found")
            return
        content_type, body = route
        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class DevServer:
    """
    Development server for one built bundle.

    Serves ``/`` (an HTML page loading the bundle), ``/bundle.js`` and, when a
    source map is given, ``/bundle.js.map``.
    """

    def __init__(self, code, host="127.0.0.1", port=8000, source_map=None):
        routes = {
            "/": ("text/html; charset=utf-8", INDEX_HTML.encode("utf-8")),
            "/index.html": ("text/html; charset=utf-8", INDEX_HTML.encode("utf-8")),
        }
        if source_map is not None:
            code = code + "//# sourceMappingURL=bundle.js.map\n"
            routes["/bundle.js.map"] = ("application/json", json.dumps(source_map).encode("utf-8"))
        routes["/bundle.js"] = ("application/javascript; charset=utf-8", code.encode("utf-8"))

        handler = type("BundleHandler", (NoCacheHandler,), {"routes": routes})
        try:
            self.httpd = ThreadingHTTPServer((host, port), handler)
        except OSError as e:
            raise OutputWriteError(
                f"Cannot start development server: {e.strerror or e}",
                path=f"{host}:{port}",
                suggestion="Pick another port with --port",
            )
        self._thread = None

    @property
    def url(self):
        host, port = self.httpd.server_address[:2]
        return f"http://{host}:{port}/"

    def start(self):
        """Serve from a background thread; returns self."""
        self._thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self._thread.start()
        return self

    def serve_forever(self):
        try:
            self.httpd.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            self.httpd.server_close()

    def stop(self):
        self.httpd.shutdown()
        self.httpd.server_close()
        if self._thread:
            self._thread.join()


def serve_bundle(code, host="127.0.0.1", port=8000, source_map=None):
    """Serve ``code`` until interrupted."""
    DevServer(code, host=host, port=port, source_map=source_map).serve_forever()
