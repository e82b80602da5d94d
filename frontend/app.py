"""
Application Wiring

Builds the request client, the domain facades, the store and the search
controller, and connects them:

    KeyValueStorage --token--> RequestClient --> ApiFacades --> AppStore
                                                      \\
                                                       +--> SearchController

Consumers receive the AppContext; nothing is reachable through
module-level globals.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional

from backend import ApiFacades, ClientConfig, RequestClient, StorageBackend

from .persistence import InMemoryKeyValueStorage, KeyValueStorage, TOKEN_KEY
from .scheduling import AsyncioScheduler, Scheduler
from .search import SearchController
from .state import AppStore, StoreConfig


@dataclass(frozen=True)
class AppContext:
    client: RequestClient
    api: ApiFacades
    store: AppStore
    search: SearchController
    storage: KeyValueStorage
    scheduler: Scheduler


def create_app(
    storage: Optional[KeyValueStorage] = None,
    backend: Optional[StorageBackend] = None,
    client_config: Optional[ClientConfig] = None,
    store_config: Optional[StoreConfig] = None,
    scheduler: Optional[Scheduler] = None,
    prefers_dark: Optional[Callable[[], bool]] = None
) -> AppContext:
    """
    Assemble one application instance.

    The client reads the session token from ``storage`` on every request,
    so a token written by a credential login is sent from then on.
    """
    storage = storage if storage is not None else InMemoryKeyValueStorage()
    scheduler = scheduler or AsyncioScheduler()

    client = RequestClient(
        storage=backend,
        config=client_config,
        token_provider=lambda: storage.get(TOKEN_KEY),
    )
    api = ApiFacades.from_client(client)
    store = AppStore(
        api,
        storage=storage,
        scheduler=scheduler,
        config=store_config,
        prefers_dark=prefers_dark,
    )
    search = SearchController(api.articles, api.system, scheduler=scheduler)
    return AppContext(
        client=client,
        api=api,
        store=store,
        search=search,
        storage=storage,
        scheduler=scheduler,
    )
