"""
Blog Client Core

Client-side half of the blog: reactive application store, toast queue,
playback and preference state, rate-control wrappers and the debounced
search panel. Talks to the simulated backend only through the domain
API facades.

LAYER STRUCTURE:
================

1. SCHEDULING (scheduling.py, timing.py)
   - Injectable timer source; debounce and throttle built on it

2. PERSISTENCE (persistence.py)
   - String key/value storage for preferences and the session

3. STATE (state/)
   - Toasts, playback machine, preferences, the AppStore

4. CONTROLLERS (search.py, app.py)
   - Search panel logic and application wiring
"""

from .scheduling import AsyncioScheduler, ManualScheduler, Scheduler
from .timing import debounce, throttle, Debounced, Throttled
from .persistence import KeyValueStorage, InMemoryKeyValueStorage, JsonFileStorage
from .state import AppStore, StoreConfig, StoreSnapshot
from .search import SearchController
from .app import AppContext, create_app

__all__ = [
    'AsyncioScheduler', 'ManualScheduler', 'Scheduler',
    'debounce', 'throttle', 'Debounced', 'Throttled',
    'KeyValueStorage', 'InMemoryKeyValueStorage', 'JsonFileStorage',
    'AppStore', 'StoreConfig', 'StoreSnapshot',
    'SearchController',
    'AppContext', 'create_app',
]
