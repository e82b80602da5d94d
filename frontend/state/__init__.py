"""
Client State Layer

Responsibility:
Hold everything the UI renders from that is not server data.

PRINCIPLES:
1. Immutable values (frozen dataclasses), replaced wholesale on change
2. Pure transitions where possible (player, preferences)
3. One store instance per application, injected, never global
"""

from .toasts import Toast, ToastQueue, ToastSeverity
from .player import PlaybackState, PlayerPhase, IDLE
from .preferences import (
    Preferences, SeasonMode, FONT_SIZE_CYCLE, SEASON_CYCLE,
    load_preferences, save_preferences,
)
from .store import AppStore, StoreConfig, StoreSnapshot

__all__ = [
    'Toast', 'ToastQueue', 'ToastSeverity',
    'PlaybackState', 'PlayerPhase', 'IDLE',
    'Preferences', 'SeasonMode', 'FONT_SIZE_CYCLE', 'SEASON_CYCLE',
    'load_preferences', 'save_preferences',
    'AppStore', 'StoreConfig', 'StoreSnapshot',
]
