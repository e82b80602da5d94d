"""
Playback State Machine
======================

Pure transitions over an immutable playback state.

    IDLE --play(song)--> PLAYING <--toggle--> PAUSED
      ^                     |                   |
      +------- close -------+------- close -----+

INVARIANT: is_playing is False whenever current_song is None.
Transitions that do not apply (toggle while idle) return the state
unchanged instead of raising.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from backend.contracts import Song


class PlayerPhase(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class PlaybackState:
    current_song: Optional[Song] = None
    is_playing: bool = False
    is_full_player_open: bool = False

    def __post_init__(self):
        if self.current_song is None and (self.is_playing or self.is_full_player_open):
            raise ValueError("Idle player cannot be playing or expanded")

    @property
    def phase(self) -> PlayerPhase:
        if self.current_song is None:
            return PlayerPhase.IDLE
        return PlayerPhase.PLAYING if self.is_playing else PlayerPhase.PAUSED


IDLE = PlaybackState()


def play(state: PlaybackState, song: Song) -> PlaybackState:
    """Load ``song`` and start it; the same song already loaded toggles instead."""
    if state.current_song is not None and state.current_song.id == song.id:
        return toggle(state)
    return replace(state, current_song=song, is_playing=True)


def toggle(state: PlaybackState) -> PlaybackState:
    if state.current_song is None:
        return state
    return replace(state, is_playing=not state.is_playing)


def close(state: PlaybackState) -> PlaybackState:
    return IDLE


def set_full_player_open(state: PlaybackState, is_open: bool) -> PlaybackState:
    if state.current_song is None:
        return state
    return replace(state, is_full_player_open=is_open)


def finished(state: PlaybackState) -> PlaybackState:
    """Track reached its end: keep it loaded, stop playing."""
    if state.current_song is None:
        return state
    return replace(state, is_playing=False)
