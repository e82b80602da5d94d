"""
UI Preferences

Theme, font size, festive decorations and season mode.
Loaded from persisted storage at store creation and written back on
every change. Unreadable persisted values fall back to defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Sequence
import logging

from ..persistence import (
    KeyValueStorage, THEME_KEY, FONT_SIZE_KEY, FESTIVE_KEY, SEASON_KEY,
)

logger = logging.getLogger(__name__)

DARK = "dark"
LIGHT = "light"

FONT_SIZE_CYCLE = (100.0, 112.5, 125.0)


class SeasonMode(Enum):
    AUTO = "auto"
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


SEASON_CYCLE = tuple(SeasonMode)


@dataclass(frozen=True)
class Preferences:
    dark_mode: bool = False
    font_size: float = FONT_SIZE_CYCLE[0]
    show_festive: bool = True
    season_mode: SeasonMode = SeasonMode.AUTO

    @property
    def theme(self) -> str:
        return DARK if self.dark_mode else LIGHT


def _next_in_cycle(cycle: Sequence, current):
    try:
        index = list(cycle).index(current)
    except ValueError:
        return cycle[0]
    return cycle[(index + 1) % len(cycle)]


def toggled_theme(prefs: Preferences) -> Preferences:
    return replace(prefs, dark_mode=not prefs.dark_mode)


def cycled_font_size(prefs: Preferences, cycle: Sequence[float] = FONT_SIZE_CYCLE) -> Preferences:
    return replace(prefs, font_size=_next_in_cycle(cycle, prefs.font_size))


def toggled_festive(prefs: Preferences) -> Preferences:
    return replace(prefs, show_festive=not prefs.show_festive)


def cycled_season(prefs: Preferences) -> Preferences:
    return replace(prefs, season_mode=_next_in_cycle(SEASON_CYCLE, prefs.season_mode))


# =============================================================================
# PERSISTENCE
# =============================================================================

def load_preferences(
    storage: KeyValueStorage,
    prefers_dark: Optional[Callable[[], bool]] = None,
    font_cycle: Sequence[float] = FONT_SIZE_CYCLE
) -> Preferences:
    """
    Read persisted preferences.

    Theme falls back to the environment probe when nothing is persisted.
    """
    defaults = Preferences(font_size=font_cycle[0])

    saved_theme = storage.get(THEME_KEY)
    if saved_theme in (DARK, LIGHT):
        dark_mode = saved_theme == DARK
    else:
        if saved_theme is not None:
            logger.warning("Ignoring persisted theme %r", saved_theme)
        dark_mode = bool(prefers_dark()) if prefers_dark else defaults.dark_mode

    font_size = defaults.font_size
    saved_font = storage.get(FONT_SIZE_KEY)
    if saved_font is not None:
        try:
            candidate = float(saved_font)
        except ValueError:
            candidate = None
        if candidate in font_cycle:
            font_size = candidate
        else:
            logger.warning("Ignoring persisted font size %r", saved_font)

    saved_festive = storage.get(FESTIVE_KEY)
    show_festive = defaults.show_festive if saved_festive is None else saved_festive == "true"

    season_mode = defaults.season_mode
    saved_season = storage.get(SEASON_KEY)
    if saved_season is not None:
        try:
            season_mode = SeasonMode(saved_season)
        except ValueError:
            logger.warning("Ignoring persisted season mode %r", saved_season)

    return Preferences(
        dark_mode=dark_mode,
        font_size=font_size,
        show_festive=show_festive,
        season_mode=season_mode,
    )


def save_preferences(storage: KeyValueStorage, prefs: Preferences) -> None:
    storage.set(THEME_KEY, prefs.theme)
    storage.set(FONT_SIZE_KEY, f"{prefs.font_size:g}")
    storage.set(FESTIVE_KEY, "true" if prefs.show_festive else "false")
    storage.set(SEASON_KEY, prefs.season_mode.value)
