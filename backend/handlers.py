"""
Endpoint Handlers

RESPONSIBILITY: Translate a routed request into a storage read or write
ALLOWED INPUTS: Request payload mapping + path parameters
OUTPUTS: Entities, pages, or small acknowledgement mappings

WHAT THIS LAYER MUST NOT DO:
============================
- Sleep or await (latency belongs to the request client)
- Return a default value in place of an error
- Keep state of its own beyond what storage holds
"""

from __future__ import annotations
from datetime import date
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.parse import quote
import logging
import random
import uuid

from .config import ClientConfig
from .contracts import (
    User, Article, ArticlePage, AuthSession, Captcha, CheckIn,
    Role, FeedbackKind, NotFoundError, ValidationError, ErrorCode,
    coerce_user_fields,
)
from .query import ArticleQueryEngine, to_bool
from .routing import Router
from .storage import StorageBackend

logger = logging.getLogger(__name__)

Payload = Mapping[str, Any]
PathParams = Mapping[str, str]


# =============================================================================
# VALIDATION HELPERS
# =============================================================================

def require_text(payload: Payload, key: str) -> str:
    value = payload.get(key)
    if value is None or not str(value).strip():
        raise ValidationError(f"{key} is required", ErrorCode.MISSING_FIELD)
    return str(value).strip()


def optional_text(payload: Payload, key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def avatar_for(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote(name)}&background=random"


def tag_list(payload: Payload) -> Tuple[str, ...]:
    tags = payload.get("tags")
    if tags is None:
        return ()
    if not isinstance(tags, (list, tuple)) or not all(isinstance(t, str) for t in tags):
        raise ValidationError("tags must be a list of strings", ErrorCode.INVALID_FIELD)
    return tuple(tags)


# =============================================================================
# HANDLERS
# =============================================================================

class EndpointHandlers:
    """
    All simulated endpoints, bound to one storage backend.

    Each handler finishes its read-modify-write in a single synchronous
    call, so interleaved requests never lose an update.
    """

    def __init__(
        self,
        storage: StorageBackend,
        config: Optional[ClientConfig] = None,
        today: Optional[Callable[[], date]] = None
    ):
        self._storage = storage
        self._config = config or ClientConfig()
        self._today = today or date.today
        self._articles = ArticleQueryEngine(storage)

    # =========================================================================
    # ARTICLES
    # =========================================================================

    def list_articles(self, payload: Payload, path: PathParams) -> ArticlePage:
        return self._articles.execute_params(payload)

    def get_article(self, payload: Payload, path: PathParams) -> Article:
        article = self._storage.get_article(path["id"])
        if article is None:
            raise NotFoundError(f"Article {path['id']} not found")
        return article

    def create_article(self, payload: Payload, path: PathParams) -> Article:
        title = require_text(payload, "title")
        content = require_text(payload, "content")

        author: Optional[User] = None
        author_id = optional_text(payload, "authorId")
        if author_id:
            author = self._storage.get_user(author_id)
            if author is None:
                raise NotFoundError(f"User {author_id} not found")

        article = Article(
            id=self._storage.next_article_id(),
            title=title,
            summary=content[:self._config.summary_length],
            content=content,
            category=optional_text(payload, "category") or "Tech",
            date=self._today().isoformat(),
            tags=tag_list(payload),
            author_id=author.id if author else None,
            author_name=author.name if author else None,
            author_avatar=author.avatar if author else None,
            author_level=author.level if author else None,
        )
        return self._storage.insert_article(article)

    def list_tags(self, payload: Payload, path: PathParams):
        return self._storage.list_collection("tags")

    def list_categories(self, payload: Payload, path: PathParams):
        return self._storage.list_collection("categories")

    # =========================================================================
    # ACCOUNT / AUTH
    # =========================================================================

    def _free_user_id(self, candidate: str) -> str:
        """``candidate`` unless an existing user already owns it."""
        if self._storage.get_user(candidate) is None:
            return candidate
        return f"{candidate}-{uuid.uuid4().hex[:8]}"

    def _session_user(self, username: str) -> User:
        """Known user by username, or a synthesized one; role by heuristic."""
        role = Role.from_username(username)
        user = self._storage.find_user_by_username(username)
        if user is None:
            user = self._storage.insert_user(User(
                id=self._free_user_id(f"u-{username.lower()}"),
                username=username,
                name=username,
                avatar=avatar_for(username),
                role=role,
            ))
            logger.info("Synthesized user %s for login", user.id)
            user = self._storage.get_user(user.id)
        return user.merged({"role": role})

    def login(self, payload: Payload, path: PathParams) -> User:
        username = require_text(payload, "username")
        return self._session_user(username)

    def auth_login(self, payload: Payload, path: PathParams) -> AuthSession:
        username = require_text(payload, "username")

        captcha_key = optional_text(payload, "captchaKey")
        captcha_code = optional_text(payload, "captchaCode")
        if captcha_key or captcha_code:
            expected = self._storage.consume_captcha(captcha_key) if captcha_key else None
            if expected is None or expected != captcha_code:
                raise ValidationError("Captcha is incorrect", ErrorCode.INVALID_CAPTCHA)

        user = self._session_user(username)
        return AuthSession(user=user, token=f"mock-jwt-token-{uuid.uuid4().hex}")

    def register(self, payload: Payload, path: PathParams) -> User:
        username = require_text(payload, "username")
        email = require_text(payload, "email")
        if self._storage.find_user_by_username(username) is not None:
            raise ValidationError(f"Username {username} is taken", ErrorCode.INVALID_FIELD)

        return self._storage.insert_user(User(
            id=f"u-{uuid.uuid4().hex[:8]}",
            username=username,
            name=username,
            email=email,
            avatar=avatar_for(username),
        ))

    def captcha(self, payload: Payload, path: PathParams) -> Captcha:
        key = uuid.uuid4().hex
        code = f"{random.Random(key).randint(0, 9999):04d}"
        self._storage.issue_captcha(key, code)
        return Captcha(
            key=key,
            image=f"https://dummyimage.com/100x40/e0e0e0/000000.png&text={code}"
        )

    def send_code(self, payload: Payload, path: PathParams) -> Dict[str, Any]:
        email = require_text(payload, "email")
        if "@" not in email:
            raise ValidationError(f"Invalid email: {email}", ErrorCode.INVALID_FIELD)
        return {"success": True}

    # =========================================================================
    # USERS
    # =========================================================================

    def get_user(self, payload: Payload, path: PathParams) -> User:
        user = self._storage.get_user(path["id"])
        if user is None:
            raise NotFoundError(f"User {path['id']} not found")
        return user

    def update_user(self, payload: Payload, path: PathParams) -> Dict[str, Any]:
        # Validate only; the caller merges the echoed partial
        coerce_user_fields(payload)
        return dict(payload)

    def check_in(self, payload: Payload, path: PathParams) -> CheckIn:
        user_id = optional_text(payload, "userId") or "anonymous"
        points = self._config.checkin_points
        total = self._storage.add_points(user_id, points)
        return CheckIn(points=points, total=total)

    def follow(self, payload: Payload, path: PathParams) -> Dict[str, Any]:
        target_id = require_text(payload, "userId")
        if self._storage.get_user(target_id) is None:
            raise NotFoundError(f"User {target_id} not found")
        follower_id = optional_text(payload, "followerId") or "anonymous"
        wanted = to_bool(payload.get("isFollowing", True))
        previous = self._storage.is_following(follower_id, target_id)
        following = self._storage.set_following(follower_id, target_id, wanted)
        return {"success": True, "isFollowing": following, "changed": previous != following}

    def _relations(self, payload: Payload):
        viewer = optional_text(payload, "userId") or "anonymous"
        return tuple(
            user.merged({"is_following": self._storage.is_following(viewer, user.id)})
            for user in self._storage.list_users()
            if user.id != viewer
        )

    def followers(self, payload: Payload, path: PathParams):
        return self._relations(payload)

    def following(self, payload: Payload, path: PathParams):
        return tuple(u for u in self._relations(payload) if u.is_following)

    def feedback(self, payload: Payload, path: PathParams) -> Dict[str, Any]:
        require_text(payload, "content")
        try:
            FeedbackKind(payload.get("type", FeedbackKind.SUGGESTION.value))
        except ValueError:
            raise ValidationError(f"Unknown feedback type: {payload.get('type')!r}")
        return {"success": True}

    def donation(self, payload: Payload, path: PathParams) -> Dict[str, Any]:
        require_text(payload, "screenshot")
        return {"success": True}

    def report(self, payload: Payload, path: PathParams) -> Dict[str, Any]:
        for key in ("targetId", "type", "reason"):
            require_text(payload, key)
        return {"success": True}

    # =========================================================================
    # AI
    # =========================================================================

    def ai_usage(self, payload: Payload, path: PathParams) -> Dict[str, int]:
        user_id = require_text(payload, "userId")
        return {"usage": self._storage.increment_usage(user_id)}

    # =========================================================================
    # STATIC COLLECTIONS
    # =========================================================================

    def collection(self, name: str):
        def handler(payload: Payload, path: PathParams):
            return self._storage.list_collection(name)
        return handler

    def apply_friend_link(self, payload: Payload, path: PathParams) -> Dict[str, Any]:
        require_text(payload, "name")
        require_text(payload, "url")
        return {"success": True}

    # =========================================================================
    # ROUTING TABLE
    # =========================================================================

    def build_router(self) -> Router:
        router = Router()

        router.get("/articles", self.list_articles)
        router.get("/articles/:id", self.get_article)
        router.get("/tags", self.list_tags)
        router.get("/categories", self.list_categories)
        router.get("/users/:id", self.get_user)
        router.get("/user/followers", self.followers)
        router.get("/user/following", self.following)
        router.get("/auth/captcha", self.captcha)
        router.get("/community", self.collection("posts"))
        router.get("/music", self.collection("songs"))
        router.get("/announcements", self.collection("announcements"))
        router.get("/search/hot", self.collection("hot_searches"))
        router.get("/ai/history", self.collection("ai_history"))
        router.get("/comments", self.collection("comments"))
        router.get("/friend-links", self.collection("friend_links"))
        router.get("/danmaku", self.collection("danmaku"))

        router.post("/articles/create", self.create_article)
        router.post("/login", self.login)
        router.post("/auth/login", self.auth_login)
        router.post("/auth/register", self.register)
        router.post("/auth/send-code", self.send_code)
        router.post("/user/update", self.update_user)
        router.post("/user/checkin", self.check_in)
        router.post("/user/follow", self.follow)
        router.post("/user/feedback", self.feedback)
        router.post("/user/donation", self.donation)
        router.post("/user/report", self.report)
        router.post("/friend-links/apply", self.apply_friend_link)
        router.post("/ai/usage", self.ai_usage)

        return router
