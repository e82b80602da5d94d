"""
Simulated Request Client

Asynchronous ``get`` / ``post`` dispatcher over the in-memory backend.

CALL PATH:
==========
1. Record the request (method, endpoint, headers) in a bounded history
2. Await the interceptor delay, then the per-method latency
3. Resolve the endpoint through the closed routing table
4. Run the handler synchronously and return its result

GUARANTEES:
===========
- Every call waits the configured latency before resolving or rejecting
- Unknown endpoints reject with NotFoundError (status 404)
- Handlers run after the last await, so counter updates are atomic with
  respect to interleaved calls on the same event loop
- Calls always resolve or reject; nothing is left pending
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, Mapping, Optional, Tuple
import asyncio
import itertools
import logging

from .config import ClientConfig
from .contracts import ApiError, ErrorCode, ValidationError
from .handlers import EndpointHandlers
from .routing import split_endpoint
from .seed import default_dataset
from .storage import InMemoryStorageBackend, StorageBackend

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
Sleep = Callable[[float], Awaitable[Any]]

UPLOAD_URL = "https://picsum.photos/200"


@dataclass(frozen=True)
class RequestRecord:
    """One dispatched request, as the backend would have seen it."""
    sequence: int
    method: str
    endpoint: str
    payload: Tuple[Tuple[str, Any], ...]
    headers: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def header_map(self) -> Dict[str, str]:
        return dict(self.headers)


class RequestClient:
    """
    In-process stand-in for the HTTP client.

    Owns the storage backend: the dataset and counters change only
    through ``post``.
    """

    def __init__(
        self,
        storage: Optional[StorageBackend] = None,
        config: Optional[ClientConfig] = None,
        token_provider: Optional[TokenProvider] = None,
        sleep: Optional[Sleep] = None
    ):
        self._config = config or ClientConfig()
        self._storage = storage if storage is not None else InMemoryStorageBackend(default_dataset())
        self._handlers = EndpointHandlers(self._storage, self._config)
        self._router = self._handlers.build_router()
        self._token_provider = token_provider
        self._sleep = sleep or asyncio.sleep
        self._sequence = itertools.count(1)
        self._history: Deque[RequestRecord] = deque(maxlen=self._config.history_size)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def history(self) -> Tuple[RequestRecord, ...]:
        return tuple(self._history)

    def set_token_provider(self, provider: Optional[TokenProvider]) -> None:
        self._token_provider = provider

    # =========================================================================
    # PUBLIC CONTRACT
    # =========================================================================

    async def get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._dispatch("GET", endpoint, params)

    async def post(self, endpoint: str, body: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._dispatch("POST", endpoint, body)

    async def upload(self, endpoint: str, files: Mapping[str, bytes]) -> Dict[str, str]:
        """
        Multipart file upload.

        Not routed: any endpoint accepts the files and resolves with a
        hosted URL after ``upload_latency``. The boundary-carrying
        Content-Type is left to the transport, so none is recorded.
        """
        if not files:
            raise ValidationError("At least one file is required", ErrorCode.MISSING_FIELD)
        path, _ = split_endpoint(endpoint)
        headers = self._headers()
        del headers["Content-Type"]
        record = RequestRecord(
            sequence=next(self._sequence),
            method="POST",
            endpoint=path,
            payload=tuple((name, len(data)) for name, data in files.items()),
            headers=tuple(headers.items()),
        )
        self._history.append(record)
        logger.debug("-> #%d upload %s (%d file(s))", record.sequence, path, len(files))
        await self._sleep(self._config.latency.upload_latency)
        return {"url": UPLOAD_URL}

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _dispatch(
        self,
        method: str,
        endpoint: str,
        data: Optional[Mapping[str, Any]]
    ) -> Any:
        path, inline = split_endpoint(endpoint)
        payload: Dict[str, Any] = dict(inline)
        if data:
            payload.update(data)

        record = RequestRecord(
            sequence=next(self._sequence),
            method=method,
            endpoint=path,
            payload=tuple(payload.items()),
            headers=tuple(self._headers().items()),
        )
        self._history.append(record)
        logger.debug("-> #%d %s %s", record.sequence, method, path)

        latency = self._config.latency
        await self._sleep(latency.interceptor_delay)
        await self._sleep(latency.for_method(method))

        # Nothing below this point awaits
        try:
            handler, path_params = self._router.resolve(method, path)
            result = handler(payload, path_params)
        except ApiError as e:
            logger.warning(
                "<- #%d %s %s rejected: %s %s",
                record.sequence, method, path, e.status, e.message
            )
            raise
        logger.debug("<- #%d %s %s ok", record.sequence, method, path)
        return result
