"""
Playback State Machine Tests
============================

Verifies:
1. is_playing is never True without a loaded song, for any action sequence
2. close always returns to idle
3. Actions that do not apply leave the state unchanged
"""

import pytest
from hypothesis import given, strategies as st

from backend.contracts import Song
from frontend.state import player
from frontend.state.player import IDLE, PlaybackState, PlayerPhase

SONG_A = Song("1", "Midnight City", "M83", "cover-a", 243)
SONG_B = Song("2", "Instant Crush", "Daft Punk", "cover-b", 337)

ACTIONS = {
    "play_a": lambda s: player.play(s, SONG_A),
    "play_b": lambda s: player.play(s, SONG_B),
    "toggle": player.toggle,
    "close": player.close,
    "expand": lambda s: player.set_full_player_open(s, True),
    "collapse": lambda s: player.set_full_player_open(s, False),
    "finished": player.finished,
}


class TestPlaybackInvariant:

    @given(st.lists(st.sampled_from(sorted(ACTIONS)), max_size=40))
    def test_never_playing_without_song(self, actions):
        state = IDLE
        for name in actions:
            state = ACTIONS[name](state)
            if state.current_song is None:
                assert not state.is_playing
                assert not state.is_full_player_open

    @given(st.lists(st.sampled_from(sorted(ACTIONS)), max_size=20))
    def test_close_always_idles(self, actions):
        state = IDLE
        for name in actions:
            state = ACTIONS[name](state)
        assert player.close(state) == IDLE

    def test_invalid_state_rejected(self):
        with pytest.raises(ValueError):
            PlaybackState(current_song=None, is_playing=True)


class TestTransitions:

    def test_play_new_song(self):
        state = player.play(IDLE, SONG_A)
        assert state.phase == PlayerPhase.PLAYING
        assert player.play(state, SONG_B).current_song == SONG_B

    def test_play_same_song_toggles(self):
        playing = player.play(IDLE, SONG_A)
        paused = player.play(playing, SONG_A)
        assert paused.phase == PlayerPhase.PAUSED
        assert player.play(paused, SONG_A).is_playing

    def test_toggle_idle_is_noop(self):
        assert player.toggle(IDLE) is IDLE

    def test_expand_idle_is_noop(self):
        assert player.set_full_player_open(IDLE, True) is IDLE

    def test_finished_keeps_song(self):
        state = player.finished(player.play(IDLE, SONG_A))
        assert state.current_song == SONG_A
        assert state.phase == PlayerPhase.PAUSED

    def test_close_collapses_full_player(self):
        state = player.set_full_player_open(player.play(IDLE, SONG_A), True)
        assert state.is_full_player_open
        assert player.close(state) == IDLE
