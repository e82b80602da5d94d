"""
Application Store Tests
=======================

Verifies:
1. Auth gating is checked at call time and drops the callback
2. Session changes: whole-user replace, merge only after success,
   stale results discarded
3. AI usage stores server totals without lost updates
4. Logout clears the session only
5. Preferences persist; toggles are idempotent in pairs
6. Listeners receive snapshots and cannot break the store
"""

import asyncio
import json

import pytest

from backend.contracts import CultivationLevel, Role, Song, ValidationError
from frontend.app import create_app
from frontend.persistence import (
    InMemoryKeyValueStorage, THEME_KEY, FONT_SIZE_KEY, TOKEN_KEY, USER_KEY,
)
from frontend.state import AppStore, StoreConfig, ToastSeverity
from frontend.state.player import IDLE

SONG = Song("1", "Midnight City", "M83", "cover", 243)
OTHER_SONG = Song("2", "Instant Crush", "Daft Punk", "cover", 337)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def store(app):
    return app.store


def messages(store):
    return [t.message for t in store.toasts]


# =============================================================================
# AUTH GATING
# =============================================================================

class TestRequireAuth:

    def test_gate_opens_after_login(self, store):
        calls = []
        assert store.require_auth(lambda: calls.append("ran")) is False
        assert calls == []
        assert store.is_auth_modal_open
        assert "Please log in first" in messages(store)

        run(store.login("bob"))
        assert not store.is_auth_modal_open
        assert store.require_auth(lambda: calls.append("ran")) is True
        assert calls == ["ran"]

    def test_checked_at_call_time(self, store):
        run(store.login("bob"))
        store.logout()
        calls = []
        assert store.require_auth(lambda: calls.append(1)) is False
        assert calls == []

    def test_async_callback_is_spawned(self, store):
        seen = []

        async def action():
            seen.append(store.user.id)

        async def scenario():
            await store.login("bob")
            store.require_auth(action)
            await asyncio.sleep(0)
            await asyncio.sleep(0)

        run(scenario())
        assert seen == ["u-2"]

    def test_require_level(self, store):
        calls = []
        run(store.login("bob"))
        assert store.require_level(CultivationLevel.GOLDEN_CORE, lambda: calls.append(1)) is False
        assert store.toasts[-1].severity is ToastSeverity.ERROR
        assert store.require_level(CultivationLevel.QI_REFINING, lambda: calls.append(2)) is True
        assert calls == [2]

    def test_require_level_logged_out(self, store):
        assert store.require_level(CultivationLevel.QI_REFINING, lambda: None) is False
        assert store.is_auth_modal_open


# =============================================================================
# SESSION
# =============================================================================

class TestLogin:

    def test_login_persists_user(self, store, kv):
        user = run(store.login("admin_bob"))
        assert store.user == user
        assert store.user.role is Role.ADMIN
        assert json.loads(kv.get(USER_KEY))["id"] == "u-admin_bob"
        assert store.toasts[-1].severity is ToastSeverity.SUCCESS

    def test_failed_login_toasts_and_raises(self, store):
        with pytest.raises(ValidationError):
            run(store.login(""))
        assert store.user is None
        assert store.toasts[-1].severity is ToastSeverity.ERROR

    def test_concurrent_logins_last_completed_wins(self, store):
        async def race():
            await asyncio.gather(store.login("alice"), store.login("admin"))

        run(race())
        # Whole-object replacement: no fields from alice survive
        assert store.user.id == "u-admin"
        assert store.user.name == "John Developer"
        assert store.user.points == 8888

    def test_session_restored_from_storage(self, kv, fast_config, scheduler):
        first = create_app(storage=kv, client_config=fast_config, scheduler=scheduler)
        run(first.store.login("bob"))

        second = create_app(storage=kv, client_config=fast_config, scheduler=scheduler)
        assert second.store.user == first.store.user

    def test_corrupt_persisted_user_discarded(self, fast_config, scheduler):
        kv = InMemoryKeyValueStorage({USER_KEY: "{broken"})
        app = create_app(storage=kv, client_config=fast_config, scheduler=scheduler)
        assert app.store.user is None
        assert kv.get(USER_KEY) is None


class TestCredentialLogin:

    def test_token_persisted_and_sent(self, app, kv, solve_captcha):
        store = app.store

        async def scenario():
            captcha = await store.refresh_captcha()
            await store.login_with_credentials("admin", "pw", solve_captcha(captcha))
            await app.api.music.get_list()

        run(scenario())
        token = kv.get(TOKEN_KEY)
        assert token.startswith("mock-jwt-token-")
        assert app.client.history[-1].header_map["Authorization"] == f"Bearer {token}"
        assert store.captcha is None

    def test_failure_refreshes_captcha(self, store):
        async def scenario():
            captcha = await store.refresh_captcha()
            with pytest.raises(ValidationError):
                await store.login_with_credentials("bob", "pw", "wrong")
            return captcha

        original = run(scenario())
        assert store.captcha is not None
        assert store.captcha.key != original.key
        assert store.user is None

    def test_logout_drops_token(self, app, kv, solve_captcha):
        async def scenario():
            captcha = await app.store.refresh_captcha()
            await app.store.login_with_credentials("bob", "pw", solve_captcha(captcha))

        run(scenario())
        app.store.logout()
        assert kv.get(TOKEN_KEY) is None
        assert kv.get(USER_KEY) is None


class TestUpdateUser:

    def test_merge_after_success(self, store, kv):
        run(store.login("bob"))
        run(store.update_user({"bio": "Now writing Python"}))
        assert store.user.bio == "Now writing Python"
        assert store.user.points == 100
        assert json.loads(kv.get(USER_KEY))["bio"] == "Now writing Python"

    def test_failure_leaves_state(self, store):
        run(store.login("bob"))
        before = store.user
        with pytest.raises(ValidationError):
            run(store.update_user({"shoe_size": 44}))
        assert store.user == before
        assert store.toasts[-1].severity is ToastSeverity.ERROR

    def test_logged_out_is_noop(self, app):
        run(app.store.update_user({"bio": "x"}))
        assert app.client.history == ()

    def test_result_for_previous_session_discarded(self, store):
        async def scenario():
            await store.login("bob")
            update = asyncio.ensure_future(store.update_user({"bio": "stale"}))
            await asyncio.sleep(0)
            store.logout()
            await store.login("alice")
            await update

        run(scenario())
        assert store.user.id == "u-1"
        assert store.user.bio != "stale"


class TestLogout:

    def test_player_and_preferences_survive(self, store):
        run(store.login("bob"))
        store.play_song(SONG)
        store.toggle_theme()
        store.logout()
        assert store.user is None
        assert not store.is_logged_in
        assert store.player.current_song == SONG
        assert store.player.is_playing
        assert store.preferences.dark_mode

    def test_login_completing_after_logout_wins(self, store, kv):
        async def scenario():
            pending = asyncio.ensure_future(store.login("bob"))
            await asyncio.sleep(0)
            store.logout()
            await pending

        run(scenario())
        assert store.user.id == "u-2"
        assert json.loads(kv.get(USER_KEY))["id"] == "u-2"
        assert kv.get(TOKEN_KEY) is None
        assert messages(store) == ["Logged out", "Welcome back, Bob Engineer"]

    def test_logout_after_completed_login_wins(self, store, kv):
        async def scenario():
            await store.login("bob")
            store.logout()

        run(scenario())
        assert store.user is None
        assert kv.get(USER_KEY) is None
        assert kv.get(TOKEN_KEY) is None
        assert messages(store) == ["Welcome back, Bob Engineer", "Logged out"]

    def test_credential_login_completing_after_logout_keeps_token(self, app, kv, solve_captcha):
        store = app.store

        async def scenario():
            captcha = await store.refresh_captcha()
            pending = asyncio.ensure_future(
                store.login_with_credentials("bob", "pw", solve_captcha(captcha))
            )
            await asyncio.sleep(0)
            store.logout()
            await pending

        run(scenario())
        assert store.user.id == "u-2"
        assert kv.get(TOKEN_KEY).startswith("mock-jwt-token-")


# =============================================================================
# ACCOUNT ACTIONS
# =============================================================================

class TestAiUsage:

    def test_concurrent_increments(self, store):
        async def scenario():
            await store.login("bob")
            return await asyncio.gather(*(store.increment_ai_usage() for _ in range(3)))

        results = run(scenario())
        assert sorted(results) == [6, 7, 8]
        assert store.user.ai_usage == 8

    def test_logged_out_noop(self, app):
        assert run(app.store.increment_ai_usage()) is None
        assert app.client.history == ()

    def test_discarded_after_user_switch(self, store):
        async def scenario():
            await store.login("bob")
            pending = asyncio.ensure_future(store.increment_ai_usage())
            await asyncio.sleep(0)
            store.logout()
            await store.login("alice")
            return await pending

        assert run(scenario()) is None
        assert store.user.id == "u-1"
        assert store.user.ai_usage == 12

    def test_server_total_replaces_local_value(self, store):
        run(store.login("bob"))
        run(store.update_user({"ai_usage": 100}))
        assert run(store.increment_ai_usage()) == 6
        assert store.user.ai_usage == 6

    def test_quota(self, store):
        run(store.login("bob"))
        assert store.ai_quota == 10
        assert store.ai_remaining == 5
        run(store.login("vip_jane"))
        assert store.ai_quota == 20
        assert store.ai_remaining == 20

    def test_remaining_when_logged_out(self, store):
        assert store.ai_remaining == 0


class TestCheckInAndFollow:

    def test_check_in_updates_points(self, store):
        run(store.login("bob"))
        assert run(store.check_in()) == 110
        assert store.user.points == 110
        assert "Checked in: +10 points" in messages(store)

    def test_check_in_logged_out_prompts(self, store):
        assert run(store.check_in()) is None
        assert store.is_auth_modal_open

    def test_follow_updates_count(self, store):
        run(store.login("bob"))
        assert run(store.follow("u-1")) is True
        assert store.user.following_count == 201
        assert run(store.follow("u-1", False)) is False
        assert store.user.following_count == 200

    def test_repeated_follow_counts_once(self, store):
        run(store.login("bob"))
        assert run(store.follow("u-1")) is True
        assert run(store.follow("u-1")) is True
        assert store.user.following_count == 201

    def test_unfollow_without_relation_keeps_count(self, store):
        run(store.login("bob"))
        assert run(store.follow("u-1", False)) is False
        assert store.user.following_count == 200


# =============================================================================
# PLAYER + MODALS
# =============================================================================

class TestPlayer:

    def test_close_player_resets(self, store):
        store.play_song(SONG)
        store.set_full_player_open(True)
        store.close_player()
        assert store.player == IDLE
        assert not store.player.is_playing

    def test_same_song_toggles_with_single_toast(self, store):
        store.play_song(SONG)
        store.play_song(SONG)
        assert not store.player.is_playing
        assert messages(store).count("Now playing: Midnight City") == 1

    def test_switch_song(self, store):
        store.play_song(SONG)
        store.play_song(OTHER_SONG)
        assert store.player.current_song == OTHER_SONG
        assert store.player.is_playing

    def test_toggle_without_song_is_noop(self, store):
        store.toggle_play()
        store.set_full_player_open(True)
        assert store.player == IDLE

    def test_song_finished(self, store):
        store.play_song(SONG)
        store.song_finished()
        assert store.player.current_song == SONG
        assert not store.player.is_playing

    def test_modals(self, store):
        store.set_search_open(True)
        store.set_auth_modal_open(True)
        assert store.is_search_open and store.is_auth_modal_open
        store.set_search_open(False)
        assert not store.is_search_open


# =============================================================================
# PREFERENCES
# =============================================================================

class TestPreferences:

    def test_theme_toggle_twice_restores(self, store, kv):
        original = store.preferences
        store.toggle_theme()
        assert kv.get(THEME_KEY) == "dark"
        store.toggle_theme()
        assert store.preferences == original
        assert kv.get(THEME_KEY) == "light"

    def test_festive_toggle_twice_restores(self, store):
        original = store.preferences
        store.toggle_festive()
        store.toggle_festive()
        assert store.preferences == original

    def test_font_size_cycles_in_three(self, store, kv):
        original = store.preferences.font_size
        sizes = [store.cycle_font_size() for _ in range(3)]
        assert sizes[-1] == original
        assert kv.get(FONT_SIZE_KEY) == "100"

    def test_custom_font_cycle(self, app):
        store = AppStore(
            app.api,
            scheduler=app.scheduler,
            config=StoreConfig(font_size_cycle=(90.0, 110.0)),
        )
        assert store.preferences.font_size == 90.0
        assert store.cycle_font_size() == 110.0
        assert store.cycle_font_size() == 90.0

    def test_season_mode_cycles(self, store):
        mode = store.cycle_season_mode()
        assert mode.value == "spring"
        assert "Season mode: spring" in messages(store)

    def test_prefers_dark_probe(self, fast_config, scheduler):
        app = create_app(client_config=fast_config, scheduler=scheduler, prefers_dark=lambda: True)
        assert app.store.preferences.dark_mode


# =============================================================================
# TOASTS + SUBSCRIPTION
# =============================================================================

class TestToasts:

    def test_expire_after_duration(self, store, scheduler):
        store.show_toast("hello")
        scheduler.advance(2.5)
        assert messages(store) == ["hello"]
        scheduler.advance(0.5)
        assert store.toasts == ()

    def test_remove_is_idempotent(self, store, scheduler):
        toast = store.show_toast("bye", ToastSeverity.WARNING)
        assert store.remove_toast(toast.id) is True
        assert store.remove_toast(toast.id) is False
        assert scheduler.pending == 0

    def test_config_validates(self):
        with pytest.raises(ValueError):
            StoreConfig(font_size_cycle=())


class TestSubscribe:

    def test_listener_receives_snapshots(self, store):
        snapshots = []
        unsubscribe = store.subscribe(snapshots.append)
        store.play_song(SONG)
        assert snapshots[-1].player.current_song == SONG
        assert snapshots[-1].toasts[-1].message == "Now playing: Midnight City"

        count = len(snapshots)
        unsubscribe()
        unsubscribe()
        store.toggle_play()
        assert len(snapshots) == count

    def test_failing_listener_is_isolated(self, store, caplog):
        seen = []

        def broken(snapshot):
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        store.subscribe(seen.append)
        store.set_search_open(True)
        assert seen[-1].is_search_open
        assert "listener" in caplog.text

    def test_listener_changes_are_redelivered(self, store):
        seen = []

        def close_search(snapshot):
            seen.append(snapshot.is_search_open)
            if snapshot.is_search_open:
                store.set_search_open(False)

        store.subscribe(close_search)
        store.set_search_open(True)
        assert seen == [True, False]
        assert not store.is_search_open

    def test_snapshot_reports_login(self, store):
        assert not store.snapshot().is_logged_in
        run(store.login("bob"))
        assert store.snapshot().is_logged_in
