"""
In-Memory Storage Layer

RESPONSIBILITY: Hold the simulated dataset and the usage/points counters
ALLOWED INPUTS: Entities from the seed dataset, writes from POST handlers
OUTPUTS: Immutable entities and counter totals

WHAT THIS LAYER MUST NOT DO:
============================
- Route requests or validate request bodies
- Sleep, await, or otherwise yield control mid-write
- Hand out mutable references to its backing collections

BOUNDARY ENFORCEMENT:
=====================
- Only the request handlers write to storage
- Every write is a single synchronous call, so a read-modify-write is
  never split across an await boundary
- List reads return tuples (snapshots), not the backing lists
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, List, Optional, Set, Tuple
import itertools
import logging
import re

from ..contracts import (
    Article, User, CommunityPost, Song, Announcement, AiHistoryEntry,
    Category, FriendLink, Danmaku, Comment,
)

logger = logging.getLogger(__name__)


# =============================================================================
# DATASET (seed input)
# =============================================================================

@dataclass(frozen=True)
class Dataset:
    """
    Immutable seed for a storage backend.

    Tests build their own datasets when exact counts matter;
    the application uses ``backend.seed.default_dataset()``.
    """
    articles: Tuple[Article, ...] = field(default_factory=tuple)
    users: Tuple[User, ...] = field(default_factory=tuple)
    posts: Tuple[CommunityPost, ...] = field(default_factory=tuple)
    songs: Tuple[Song, ...] = field(default_factory=tuple)
    announcements: Tuple[Announcement, ...] = field(default_factory=tuple)
    ai_history: Tuple[AiHistoryEntry, ...] = field(default_factory=tuple)
    comments: Tuple[Comment, ...] = field(default_factory=tuple)
    hot_searches: Tuple[str, ...] = field(default_factory=tuple)
    tags: Tuple[str, ...] = field(default_factory=tuple)
    categories: Tuple[Category, ...] = field(default_factory=tuple)
    friend_links: Tuple[FriendLink, ...] = field(default_factory=tuple)
    danmaku: Tuple[Danmaku, ...] = field(default_factory=tuple)
    # user id -> article ids
    favorites: Tuple[Tuple[str, Tuple[str, ...]], ...] = field(default_factory=tuple)


# =============================================================================
# STORAGE INTERFACE (Dependency Inversion)
# =============================================================================

class StorageBackend:
    """
    Abstract storage backend interface.

    The routing and filtering logic only talks to this interface, so it
    can be tested independently of the storage representation.
    """

    # --- articles ---

    def list_articles(self) -> Tuple[Article, ...]:
        """All articles, newest first."""
        raise NotImplementedError

    def get_article(self, article_id: str) -> Optional[Article]:
        raise NotImplementedError

    def insert_article(self, article: Article) -> Article:
        """Prepend an article so newest-first order needs no sort."""
        raise NotImplementedError

    def next_article_id(self) -> str:
        raise NotImplementedError

    def favorites_of(self, user_id: str) -> FrozenSet[str]:
        raise NotImplementedError

    # --- users ---

    def list_users(self) -> Tuple[User, ...]:
        raise NotImplementedError

    def get_user(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def find_user_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def insert_user(self, user: User) -> User:
        raise NotImplementedError

    def is_following(self, follower_id: str, target_id: str) -> bool:
        raise NotImplementedError

    def set_following(self, follower_id: str, target_id: str, following: bool) -> bool:
        raise NotImplementedError

    # --- counters ---

    def usage_of(self, user_id: str) -> int:
        raise NotImplementedError

    def increment_usage(self, user_id: str) -> int:
        """Add exactly one to the user's AI usage and return the new total."""
        raise NotImplementedError

    def add_points(self, user_id: str, amount: int) -> int:
        raise NotImplementedError

    # --- captcha ---

    def issue_captcha(self, key: str, code: str) -> None:
        raise NotImplementedError

    def consume_captcha(self, key: str) -> Optional[str]:
        raise NotImplementedError

    # --- static collections ---

    def list_collection(self, name: str) -> Tuple[object, ...]:
        raise NotImplementedError


# =============================================================================
# IN-MEMORY STORAGE BACKEND (Reference Implementation)
# =============================================================================

_ARTICLE_ID = re.compile(r"^art-(\d+)$")

STATIC_COLLECTIONS = (
    "posts", "songs", "announcements", "ai_history", "comments",
    "hot_searches", "tags", "categories", "friend_links", "danmaku",
)


class InMemoryStorageBackend(StorageBackend):
    """
    In-memory implementation of the storage backend.

    Articles are kept newest-first in a list with an id index beside it.
    Counters are plain dicts; every mutation completes in one call.
    """

    def __init__(self, dataset: Optional[Dataset] = None):
        dataset = dataset or Dataset()

        # Articles (newest first) + primary key index
        self._articles: List[Article] = list(dataset.articles)
        self._article_index: Dict[str, Article] = {a.id: a for a in self._articles}

        # Users + username index
        self._users: Dict[str, User] = {u.id: u for u in dataset.users}

        # Relations
        self._favorites: Dict[str, FrozenSet[str]] = {
            user_id: frozenset(ids) for user_id, ids in dataset.favorites
        }
        self._follows: Set[Tuple[str, str]] = set()

        # Counters seeded from the user records
        self._usage: Dict[str, int] = {u.id: u.ai_usage for u in dataset.users}
        self._points: Dict[str, int] = {u.id: u.points for u in dataset.users}

        # Issued captcha codes (key -> code)
        self._captchas: Dict[str, str] = {}

        self._static: Dict[str, Tuple[object, ...]] = {
            name: tuple(getattr(dataset, name)) for name in STATIC_COLLECTIONS
        }

        # Article ids continue above every seeded id
        highest = 0
        for article_id in self._article_index:
            match = _ARTICLE_ID.match(article_id)
            if match:
                highest = max(highest, int(match.group(1)))
        self._article_sequence = itertools.count(highest + 1)

    # --- articles ---

    def list_articles(self) -> Tuple[Article, ...]:
        return tuple(self._articles)

    def get_article(self, article_id: str) -> Optional[Article]:
        return self._article_index.get(article_id)

    def insert_article(self, article: Article) -> Article:
        if article.id in self._article_index:
            raise KeyError(f"Duplicate article id: {article.id}")
        self._articles.insert(0, article)
        self._article_index[article.id] = article
        logger.info("Stored article %s (%d total)", article.id, len(self._articles))
        return article

    def next_article_id(self) -> str:
        candidate = f"art-{next(self._article_sequence)}"
        while candidate in self._article_index:
            candidate = f"art-{next(self._article_sequence)}"
        return candidate

    def favorites_of(self, user_id: str) -> FrozenSet[str]:
        return self._favorites.get(user_id, frozenset())

    # --- users ---

    def list_users(self) -> Tuple[User, ...]:
        return tuple(self._users.values())

    def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None:
            return None
        # Counters are authoritative over the stored record
        return replace(
            user,
            ai_usage=self._usage.get(user_id, user.ai_usage),
            points=self._points.get(user_id, user.points)
        )

    def find_user_by_username(self, username: str) -> Optional[User]:
        lowered = username.lower()
        for user in self._users.values():
            if user.username and user.username.lower() == lowered:
                return self.get_user(user.id)
        return None

    def insert_user(self, user: User) -> User:
        if user.id in self._users:
            raise KeyError(f"Duplicate user id: {user.id}")
        self._users[user.id] = user
        self._usage.setdefault(user.id, user.ai_usage)
        self._points.setdefault(user.id, user.points)
        return user

    def is_following(self, follower_id: str, target_id: str) -> bool:
        return (follower_id, target_id) in self._follows

    def set_following(self, follower_id: str, target_id: str, following: bool) -> bool:
        if following:
            self._follows.add((follower_id, target_id))
        else:
            self._follows.discard((follower_id, target_id))
        return following

    # --- counters ---

    def usage_of(self, user_id: str) -> int:
        return self._usage.get(user_id, 0)

    def increment_usage(self, user_id: str) -> int:
        total = self._usage.get(user_id, 0) + 1
        self._usage[user_id] = total
        return total

    def add_points(self, user_id: str, amount: int) -> int:
        total = self._points.get(user_id, 0) + amount
        self._points[user_id] = total
        return total

    # --- captcha ---

    def issue_captcha(self, key: str, code: str) -> None:
        self._captchas[key] = code

    def consume_captcha(self, key: str) -> Optional[str]:
        return self._captchas.pop(key, None)

    # --- static collections ---

    def list_collection(self, name: str) -> Tuple[object, ...]:
        if name not in self._static:
            raise KeyError(f"Unknown collection: {name}")
        return self._static[name]
