"""
Application Store

Single source of truth for client-side state: session, auth gating,
media playback, UI preferences, modal visibility and toasts.

OWNERSHIP:
==========
- Session/User: owned here, changed only through store actions
- Dataset entities: owned by the request client's backend
- Preferences: owned here, mirrored to key-value persistence

CONCURRENCY RULES:
==================
- Async actions re-read state after every await; a result for a user
  who is no longer the session user is discarded
- Login replaces the whole user object, so the last completed login
  or logout wins and no hybrid state is possible
- require_auth checks the session at call time
- AI usage stores the server total, never a local increment

Listeners registered with ``subscribe`` receive an immutable
StoreSnapshot after every change. Changes made by a listener during
dispatch are coalesced into one more dispatch round.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Tuple
import inspect
import json
import logging

from backend.api import ApiFacades
from backend.contracts import ApiError, Captcha, CultivationLevel, Song, User

from ..persistence import (
    InMemoryKeyValueStorage, KeyValueStorage, TOKEN_KEY, USER_KEY,
)
from ..scheduling import AsyncioScheduler, Scheduler
from . import player
from .player import PlaybackState
from .preferences import (
    FONT_SIZE_CYCLE, Preferences, cycled_font_size, cycled_season,
    load_preferences, save_preferences, toggled_festive, toggled_theme,
)
from .toasts import Toast, ToastQueue, ToastSeverity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreConfig:
    toast_duration_ms: float = 3000
    font_size_cycle: Tuple[float, ...] = FONT_SIZE_CYCLE
    ai_quota_default: int = 10
    ai_quota_vip: int = 20

    def __post_init__(self):
        if len(self.font_size_cycle) < 1:
            raise ValueError("font_size_cycle must not be empty")
        if self.toast_duration_ms < 0:
            raise ValueError("toast_duration_ms must be >= 0")


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable view of the whole store, handed to listeners."""
    user: Optional[User]
    preferences: Preferences
    player: PlaybackState
    toasts: Tuple[Toast, ...]
    is_search_open: bool
    is_auth_modal_open: bool
    captcha: Optional[Captcha]

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None


Listener = Callable[[StoreSnapshot], None]


class AppStore:
    """
    Process-wide reactive state container.

    Construct once at application start and inject it into consumers;
    nothing here is a module-level singleton. With the default
    AsyncioScheduler, actions that toast must run inside the event loop.
    """

    def __init__(
        self,
        api: ApiFacades,
        storage: Optional[KeyValueStorage] = None,
        scheduler: Optional[Scheduler] = None,
        config: Optional[StoreConfig] = None,
        prefers_dark: Optional[Callable[[], bool]] = None
    ):
        self._api = api
        self._storage = storage if storage is not None else InMemoryKeyValueStorage()
        self._scheduler = scheduler or AsyncioScheduler()
        self._config = config or StoreConfig()

        self._listeners: List[Listener] = []
        self._dispatching = False
        self._dirty = False

        self._user: Optional[User] = self._restore_user()
        self._preferences = load_preferences(
            self._storage, prefers_dark, self._config.font_size_cycle
        )
        self._player = player.IDLE
        self._search_open = False
        self._auth_modal_open = False
        self._captcha: Optional[Captcha] = None
        self._toasts = ToastQueue(
            self._scheduler,
            duration_ms=self._config.toast_duration_ms,
            on_change=self._notify
        )

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_logged_in(self) -> bool:
        return self._user is not None

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def player(self) -> PlaybackState:
        return self._player

    @property
    def toasts(self) -> Tuple[Toast, ...]:
        return self._toasts.items

    @property
    def is_search_open(self) -> bool:
        return self._search_open

    @property
    def is_auth_modal_open(self) -> bool:
        return self._auth_modal_open

    @property
    def captcha(self) -> Optional[Captcha]:
        return self._captcha

    @property
    def ai_quota(self) -> int:
        if self._user is not None and self._user.is_vip:
            return self._config.ai_quota_vip
        return self._config.ai_quota_default

    @property
    def ai_remaining(self) -> int:
        if self._user is None:
            return 0
        return max(0, self.ai_quota - self._user.ai_usage)

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            user=self._user,
            preferences=self._preferences,
            player=self._player,
            toasts=self._toasts.items,
            is_search_open=self._search_open,
            is_auth_modal_open=self._auth_modal_open,
            captcha=self._captcha,
        )

    # =========================================================================
    # SUBSCRIPTION
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self) -> None:
        if self._dispatching:
            self._dirty = True
            return
        self._dispatching = True
        try:
            while True:
                self._dirty = False
                snapshot = self.snapshot()
                for listener in list(self._listeners):
                    try:
                        listener(snapshot)
                    except Exception:
                        logger.exception("Store listener %r failed", listener)
                if not self._dirty:
                    break
        finally:
            self._dispatching = False

    # =========================================================================
    # SESSION
    # =========================================================================

    def _restore_user(self) -> Optional[User]:
        raw = self._storage.get(USER_KEY)
        if raw is None:
            return None
        try:
            return User.from_dict(json.loads(raw))
        except (ValueError, TypeError, ApiError) as e:
            logger.warning("Discarding persisted user: %s", e)
            self._storage.remove(USER_KEY)
            return None

    def _persist_user(self) -> None:
        if self._user is None:
            self._storage.remove(USER_KEY)
        else:
            self._storage.set(USER_KEY, json.dumps(self._user.to_dict()))

    def _start_session(self, user: User, token: Optional[str]) -> None:
        self._user = user
        self._persist_user()
        if token:
            self._storage.set(TOKEN_KEY, token)
        else:
            self._storage.remove(TOKEN_KEY)
        self._auth_modal_open = False
        logger.info("Session started for %s (%s)", user.id, user.role.value)
        self.show_toast(f"Welcome back, {user.name}", ToastSeverity.SUCCESS)

    def _is_current(self, user: User) -> bool:
        return self._user is not None and self._user.id == user.id

    async def login(self, identifier: str) -> User:
        """
        Log in through the user API.

        On failure an error toast is shown and the error is re-raised.
        """
        try:
            user = await self._api.users.login(identifier)
        except ApiError as e:
            self.show_toast(f"Login failed: {e.message}", ToastSeverity.ERROR)
            raise
        self._start_session(user, token=None)
        return user

    async def login_with_credentials(
        self,
        username: str,
        password: Optional[str] = None,
        captcha_code: Optional[str] = None
    ) -> User:
        """
        Credential login through the auth API; persists the session token.

        On failure the captcha is refreshed before the error is re-raised,
        since an issued captcha is single-use.
        """
        captcha_key = self._captcha.key if self._captcha else None
        try:
            session = await self._api.auth.login(
                username,
                password=password,
                captcha_key=captcha_key,
                captcha_code=captcha_code
            )
        except ApiError as e:
            self.show_toast(f"Login failed: {e.message}", ToastSeverity.ERROR)
            try:
                await self.refresh_captcha()
            except ApiError:
                logger.exception("Captcha refresh after failed login also failed")
            raise
        self._captcha = None
        self._start_session(session.user, token=session.token)
        return session.user

    async def refresh_captcha(self) -> Captcha:
        captcha = await self._api.auth.get_captcha()
        self._captcha = captcha
        self._notify()
        return captcha

    def logout(self) -> None:
        """Clear the session only; player and preferences are untouched."""
        previous = self._user
        self._user = None
        self._storage.remove(USER_KEY)
        self._storage.remove(TOKEN_KEY)
        if previous is not None:
            logger.info("Session ended for %s", previous.id)
        self.show_toast("Logged out", ToastSeverity.INFO)

    async def update_user(self, partial: Mapping[str, Any]) -> None:
        """
        Merge ``partial`` into the user after the server accepts it.

        No optimistic update: state changes only on success.
        """
        user = self._user
        if user is None:
            return
        try:
            echoed = await self._api.users.update_profile(partial)
        except ApiError as e:
            self.show_toast(f"Update failed: {e.message}", ToastSeverity.ERROR)
            raise
        if not self._is_current(user):
            logger.info("Discarding profile update for %s: session changed", user.id)
            return
        self._user = self._user.merged(echoed)
        self._persist_user()
        self.show_toast("Profile updated", ToastSeverity.SUCCESS)

    # =========================================================================
    # GATING
    # =========================================================================

    def _run(self, callback: Callable[[], Any]) -> None:
        result = callback()
        if inspect.iscoroutine(result):
            self._scheduler.spawn(result)

    def _prompt_login(self) -> None:
        self._auth_modal_open = True
        self.show_toast("Please log in first", ToastSeverity.INFO)

    def require_auth(self, callback: Callable[[], Any]) -> bool:
        """
        Run ``callback`` now if logged in; otherwise open the auth modal.

        The callback is dropped, not queued: the caller re-triggers the
        action after logging in. Returns whether the callback ran.
        """
        if self._user is None:
            self._prompt_login()
            return False
        self._run(callback)
        return True

    def require_level(self, minimum: CultivationLevel, callback: Callable[[], Any]) -> bool:
        if self._user is None:
            self._prompt_login()
            return False
        if not self._user.level.meets(minimum):
            self.show_toast(f"Requires level {minimum.label}", ToastSeverity.ERROR)
            return False
        self._run(callback)
        return True

    # =========================================================================
    # ACCOUNT ACTIONS
    # =========================================================================

    async def increment_ai_usage(self) -> Optional[int]:
        """Record one AI use and store the server's running total."""
        user = self._user
        if user is None:
            return None
        try:
            result = await self._api.ai.update_usage(user.id)
        except ApiError as e:
            logger.warning("AI usage update failed for %s: %s", user.id, e.message)
            self.show_toast("Failed to update AI usage", ToastSeverity.ERROR)
            return None
        usage = int(result["usage"])
        if not self._is_current(user):
            return None
        self._user = self._user.merged({"ai_usage": usage})
        self._persist_user()
        self._notify()
        return usage

    async def check_in(self) -> Optional[int]:
        user = self._user
        if user is None:
            self._prompt_login()
            return None
        try:
            result = await self._api.users.check_in(user.id)
        except ApiError as e:
            self.show_toast(f"Check-in failed: {e.message}", ToastSeverity.ERROR)
            raise
        if not self._is_current(user):
            return None
        self._user = self._user.merged({"points": result.total})
        self._persist_user()
        self.show_toast(f"Checked in: +{result.points} points", ToastSeverity.SUCCESS)
        return result.total

    async def follow(self, user_id: str, is_following: bool = True) -> bool:
        user = self._user
        if user is None:
            self._prompt_login()
            return False
        try:
            result = await self._api.users.follow(user_id, is_following, follower_id=user.id)
        except ApiError as e:
            self.show_toast(f"Follow failed: {e.message}", ToastSeverity.ERROR)
            raise
        if not self._is_current(user):
            return False
        if result["changed"]:
            delta = 1 if result["isFollowing"] else -1
            self._user = self._user.merged(
                {"following_count": max(0, self._user.following_count + delta)}
            )
            self._persist_user()
        self.show_toast("Followed" if result["isFollowing"] else "Unfollowed", ToastSeverity.SUCCESS)
        return result["isFollowing"]

    # =========================================================================
    # MODALS
    # =========================================================================

    def set_search_open(self, is_open: bool) -> None:
        if self._search_open != is_open:
            self._search_open = is_open
            self._notify()

    def set_auth_modal_open(self, is_open: bool) -> None:
        if self._auth_modal_open != is_open:
            self._auth_modal_open = is_open
            self._notify()

    # =========================================================================
    # PLAYER
    # =========================================================================

    def _set_player(self, state: PlaybackState) -> None:
        if state != self._player:
            logger.debug("Player %s -> %s", self._player.phase.value, state.phase.value)
            self._player = state
            self._notify()

    def play_song(self, song: Song) -> None:
        """Start ``song``; the already-loaded song toggles play/pause."""
        is_new = self._player.current_song is None or self._player.current_song.id != song.id
        self._set_player(player.play(self._player, song))
        if is_new:
            self.show_toast(f"Now playing: {song.title}", ToastSeverity.SUCCESS)

    def toggle_play(self) -> None:
        self._set_player(player.toggle(self._player))

    def close_player(self) -> None:
        self._set_player(player.close(self._player))

    def set_full_player_open(self, is_open: bool) -> None:
        self._set_player(player.set_full_player_open(self._player, is_open))

    def song_finished(self) -> None:
        self._set_player(player.finished(self._player))

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    def _set_preferences(self, prefs: Preferences) -> None:
        self._preferences = prefs
        save_preferences(self._storage, prefs)
        self._notify()

    def toggle_theme(self) -> bool:
        self._set_preferences(toggled_theme(self._preferences))
        dark = self._preferences.dark_mode
        self.show_toast(
            "Switched to dark mode" if dark else "Switched to light mode",
            ToastSeverity.INFO
        )
        return dark

    def cycle_font_size(self) -> float:
        self._set_preferences(
            cycled_font_size(self._preferences, self._config.font_size_cycle)
        )
        return self._preferences.font_size

    def toggle_festive(self) -> bool:
        self._set_preferences(toggled_festive(self._preferences))
        enabled = self._preferences.show_festive
        self.show_toast(
            "Festive decorations on" if enabled else "Festive decorations off",
            ToastSeverity.INFO
        )
        return enabled

    def cycle_season_mode(self):
        self._set_preferences(cycled_season(self._preferences))
        mode = self._preferences.season_mode
        self.show_toast(f"Season mode: {mode.value}", ToastSeverity.INFO)
        return mode

    # =========================================================================
    # TOASTS
    # =========================================================================

    def show_toast(self, message: str, severity: ToastSeverity = ToastSeverity.INFO) -> Toast:
        return self._toasts.show(message, severity)

    def remove_toast(self, toast_id: int) -> bool:
        return self._toasts.remove(toast_id)
