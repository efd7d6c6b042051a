"""HTTP endpoint: GET a random location as a pretty-printed JSON array.

Routes (relative to an optional base path):
  GET /                      — population-weighted
  GET /weighted              — population-weighted
  GET /weighted/population   — population-weighted
  GET /weighted/uniform      — unweighted, above the population floor
  GET /random                — same as /weighted/uniform
"""

from __future__ import annotations

import http.server
import json
import logging
from typing import Any
from urllib.parse import urlsplit

from randplace.errors import RandplaceError
from randplace.service import LocationService

logger = logging.getLogger(__name__)

ROUTES: dict[str, str] = {
    "": "population",
    "weighted": "population",
    "weighted/population": "population",
    "weighted/uniform": "uniform",
    "random": "uniform",
}


def resolve_route(path: str, base_path: str = "") -> str | None:
    """Map a request path to a strategy name, or None if unrouted."""
    path = urlsplit(path).path
    base = base_path.strip("/")
    rel = path.strip("/")
    if base:
        if rel == base:
            rel = ""
        elif rel.startswith(base + "/"):
            rel = rel[len(base) + 1:]
        else:
            return None
    return ROUTES.get(rel)


def render_json(payload: Any) -> bytes:
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


class LocationRequestHandler(http.server.BaseHTTPRequestHandler):
    """Dispatches GETs to the service bound on the server instance."""

    server: LocationHTTPServer

    def _send(self, status: int, payload: Any, headers: dict[str, str] | None = None) -> None:
        body = render_json(payload)
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        mode = resolve_route(self.path, self.server.base_path)
        if mode is None:
            self._send(404, {"error": "route_not_found", "message": f"no route for {self.path}", "retryable": False})
            return
        try:
            locations = self.server.service.random_location_sync(mode)
        except RandplaceError as exc:
            logger.warning("%s %s -> %d %s: %s", self.command, self.path, exc.status_code, exc.code, exc)
            headers = {"Retry-After": "0"} if exc.retryable else None
            self._send(exc.status_code, exc.to_payload(), headers)
            return
        except Exception:
            logger.exception("Unhandled error serving %s", self.path)
            self._send(500, {"error": "internal_error", "message": "internal server error", "retryable": False})
            return
        self._send(200, [loc.model_dump() for loc in locations])

    def _method_not_allowed(self):
        self._send(405, {"error": "method_not_allowed", "message": f"{self.command} not supported", "retryable": False},
                   {"Allow": "GET"})

    do_POST = do_PUT = do_DELETE = do_PATCH = _method_not_allowed

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)


class LocationHTTPServer(http.server.ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], service: LocationService, base_path: str = ""):
        super().__init__(address, LocationRequestHandler)
        self.service = service
        self.base_path = base_path


def serve(service: LocationService, host: str = "127.0.0.1", port: int = 3000, base_path: str = "") -> None:
    """Serve until interrupted."""
    httpd = LocationHTTPServer((host, port), service, base_path)
    logger.info("Listening on http://%s:%d/%s", host, httpd.server_address[1], base_path.strip("/"))
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        httpd.server_close()
