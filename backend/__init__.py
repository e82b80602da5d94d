"""
Simulated Blog Backend

In-process stand-in for the blog's HTTP backend. Requests are resolved
against an in-memory dataset after an artificial network delay. The
backend stays a simulation; the point is its call contract.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Immutable entities, typed ApiError hierarchy, closed enumerations
   - MUST NOT: depend on any other layer

2. STORAGE (storage/)
   - Responsibility: dataset collections, usage and points counters
   - Outputs: immutable entities, counter totals
   - MUST NOT: await, route, or hand out its backing collections

3. QUERY (query/)
   - Responsibility: article search, filtering and pagination
   - Outputs: ArticlePage computed from the filtered set
   - MUST NOT: mutate storage

4. HANDLERS + ROUTING (handlers.py, routing.py)
   - Responsibility: closed endpoint table, validation, writes
   - MUST NOT: sleep or return defaults in place of errors

5. REQUEST CLIENT (client.py)
   - Responsibility: latency injection, headers, dispatch
   - Outputs: awaited results or ApiError rejections

6. DOMAIN API FACADES (api/)
   - Responsibility: typed domain operations over the client
   - MUST NOT: catch errors

CONSTRAINTS ENFORCED:
=====================
- Explicit errors: unknown endpoints and missing ids reject with 404
- Single owner: the dataset changes only through POST endpoints
- Atomic counters: no read-modify-write spans an await
"""

from .config import ClientConfig, LatencyConfig
from .client import RequestClient, RequestRecord
from .storage import Dataset, StorageBackend, InMemoryStorageBackend
from .seed import default_dataset
from .api import ApiFacades

__all__ = [
    'ClientConfig', 'LatencyConfig',
    'RequestClient', 'RequestRecord',
    'Dataset', 'StorageBackend', 'InMemoryStorageBackend',
    'default_dataset', 'ApiFacades',
]
