"""Local static file server so relative links in rendered pages resolve."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Iterator

from preview_images.errors import InfrastructureError

logger = logging.getLogger(__name__)


class _QuietHandler(SimpleHTTPRequestHandler):
    """Static handler that routes access logs to the module logger."""

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class StaticServer:
    """Serves ``root`` over HTTP from a background thread."""

    def __init__(self, root: str | Path, host: str = "localhost", port: int = 3000):
        self.root = Path(root)
        self.host = host
        self.port = port
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        handler = partial(_QuietHandler, directory=str(self.root))
        try:
            self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
        except (OSError, OverflowError) as e:
            raise InfrastructureError(
                f"Could not start static server on {self.host}:{self.port}: {e}"
            ) from e
        # Port 0 asks the OS for a free port
        self.port = self._httpd.server_address[1]
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Serving %s at %s", self.root, self.base_url)

    def stop(self) -> None:
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._httpd = None
        self._thread = None
        logger.debug("Static server on port %d stopped", self.port)

    @property
    def running(self) -> bool:
        return self._httpd is not None


@contextmanager
def serve_directory(root: str | Path, host: str = "localhost", port: int = 3000) -> Iterator[StaticServer]:
    """Run a static server for the duration of the ``with`` block."""
    server = StaticServer(root, host, port)
    server.start()
    try:
        yield server
    finally:
        server.stop()
