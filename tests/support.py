from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from requests.structures import CaseInsensitiveDict

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


@dataclass
class Route:
    body: bytes = b""
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


def html(text: str, status: int = 200) -> Route:
    return Route(text.encode("utf-8"), status, {"Content-Type": "text/html; charset=utf-8"})


def text(body: str, content_type: str, status: int = 200) -> Route:
    return Route(body.encode("utf-8"), status, {"Content-Type": content_type})


def binary(body: bytes, content_type: str) -> Route:
    return Route(body, 200, {"Content-Type": content_type, "Content-Length": str(len(body))})


class FakeResponse:
    def __init__(self, url: str, route: Route):
        self.url = url
        self.status_code = route.status
        self.headers = CaseInsensitiveDict(route.headers)
        self._body = route.body
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self._body), chunk_size):
            yield self._body[i : i + chunk_size]

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class FakeSession:
    """Serves canned responses by exact URL; anything else is a 404."""

    def __init__(self, routes: Optional[Dict[str, Union[Route, BaseException]]] = None):
        self.routes: Dict[str, Union[Route, BaseException]] = dict(routes or {})
        self.calls: List[str] = []
        self.request_headers: Dict[str, Dict[str, str]] = {}
        self._lock = threading.Lock()
        self.closed = False

    def get(self, url, timeout=None, stream=False, headers=None):
        with self._lock:
            self.calls.append(url)
            self.request_headers[url] = dict(headers or {})
        route = self.routes.get(url)
        if isinstance(route, BaseException):
            raise route
        if route is None:
            route = Route(b"not found", 404, {"Content-Type": "text/plain"})
        return FakeResponse(url, route)

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
