"""
Endpoint Routing

Closed routing table for the simulated backend.

GUARANTEES:
===========
- Every endpoint string resolves to exactly one handler or is rejected
- Unknown endpoints (or a known path with the wrong method) reject
  with NotFoundError, never a silent default response
- Literal routes take precedence over parameterized ones
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit, parse_qsl
import re

from .contracts import NotFoundError, ErrorCode


Handler = Callable[[Mapping[str, Any], Mapping[str, str]], Any]

METHODS = ("GET", "POST")

_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True)
class Route:
    """A single method + path pattern binding."""
    method: str
    pattern: str
    handler: Handler
    regex: "re.Pattern[str]"
    is_literal: bool

    @staticmethod
    def compile(method: str, pattern: str, handler: Handler) -> Route:
        if method not in METHODS:
            raise ValueError(f"Unsupported method: {method}")
        is_literal = _PARAM.search(pattern) is None
        regex = re.compile(
            "^" + _PARAM.sub(r"(?P<\1>[^/]+)", re.escape(pattern)) + "$"
        )
        return Route(method, pattern, handler, regex, is_literal)

    def match(self, path: str) -> Optional[Dict[str, str]]:
        found = self.regex.match(path)
        if found is None:
            return None
        return found.groupdict()


def split_endpoint(endpoint: str) -> Tuple[str, Dict[str, str]]:
    """Separate an endpoint into its path and any inline query parameters."""
    parts = urlsplit(endpoint)
    path = parts.path or "/"
    if len(path) > 1:
        path = path.rstrip("/")
    return path, dict(parse_qsl(parts.query))


class Router:
    """
    Method + path dispatch table.

    Routes are registered once at client construction; the table is
    closed afterwards in the sense that dispatch never falls through to
    a catch-all.
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add(self, method: str, pattern: str, handler: Handler) -> None:
        route = Route.compile(method, pattern, handler)
        for existing in self._routes:
            if existing.method == method and existing.pattern == pattern:
                raise ValueError(f"Duplicate route: {method} {pattern}")
        self._routes.append(route)
        # Literal routes first, then by registration order
        self._routes.sort(key=lambda r: not r.is_literal)

    def get(self, pattern: str, handler: Handler) -> None:
        self.add("GET", pattern, handler)

    def post(self, pattern: str, handler: Handler) -> None:
        self.add("POST", pattern, handler)

    def resolve(self, method: str, path: str) -> Tuple[Handler, Dict[str, str]]:
        for route in self._routes:
            if route.method != method:
                continue
            params = route.match(path)
            if params is not None:
                return route.handler, params
        raise NotFoundError(
            f"No route for {method} {path}",
            ErrorCode.ENDPOINT_NOT_FOUND
        )

    @property
    def routes(self) -> Tuple[Tuple[str, str], ...]:
        return tuple((r.method, r.pattern) for r in self._routes)
