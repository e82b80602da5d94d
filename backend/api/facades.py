"""
Domain API Facades

Typed wrappers translating named domain operations into request
client calls.

BOUNDARY ENFORCEMENT:
=====================
- Facades never catch: ApiError passes through untouched
- Facades hold no state besides the client reference
- Python-side arguments are snake_case; wire keys are camelCase
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from ..client import RequestClient
from ..contracts import (
    Article, ArticlePage, AuthSession, Captcha, CheckIn, User,
    CommunityPost, Song, Announcement, AiHistoryEntry, Category,
    FriendLink, FeedbackKind,
)


def _drop_none(**values: Any) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


class ArticleApi:
    def __init__(self, client: RequestClient):
        self._client = client

    async def get_list(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        q: Optional[str] = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        user_id: Optional[str] = None,
        favorites: Optional[bool] = None
    ) -> ArticlePage:
        params = _drop_none(
            page=page, limit=limit, q=q, category=category, tag=tag,
            userId=user_id, favorites=favorites
        )
        return await self._client.get("/articles", params)

    async def get_detail(self, article_id: str) -> Article:
        return await self._client.get(f"/articles/{article_id}")

    async def create(
        self,
        title: str,
        content: str,
        author_id: Optional[str] = None,
        category: Optional[str] = None
    ) -> Article:
        body = _drop_none(title=title, content=content, authorId=author_id, category=category)
        return await self._client.post("/articles/create", body)

    async def get_tags(self) -> Tuple[str, ...]:
        return await self._client.get("/tags")

    async def get_categories(self) -> Tuple[Category, ...]:
        return await self._client.get("/categories")


class UserApi:
    def __init__(self, client: RequestClient):
        self._client = client

    async def login(self, username: str) -> User:
        return await self._client.post("/login", {"username": username})

    async def get_profile(self, user_id: str) -> User:
        return await self._client.get(f"/users/{user_id}")

    async def update_profile(self, partial: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._client.post("/user/update", dict(partial))

    async def check_in(self, user_id: Optional[str] = None) -> CheckIn:
        return await self._client.post("/user/checkin", _drop_none(userId=user_id))

    async def follow(
        self,
        user_id: str,
        is_following: bool,
        follower_id: Optional[str] = None
    ) -> Dict[str, Any]:
        body = _drop_none(userId=user_id, isFollowing=is_following, followerId=follower_id)
        return await self._client.post("/user/follow", body)

    async def get_followers(self, user_id: Optional[str] = None) -> Tuple[User, ...]:
        return await self._client.get("/user/followers", _drop_none(userId=user_id))

    async def get_following(self, user_id: Optional[str] = None) -> Tuple[User, ...]:
        return await self._client.get("/user/following", _drop_none(userId=user_id))

    async def submit_feedback(
        self,
        content: str,
        kind: FeedbackKind = FeedbackKind.SUGGESTION,
        user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        body = _drop_none(content=content, type=kind.value, userId=user_id)
        return await self._client.post("/user/feedback", body)

    async def submit_donation(
        self,
        screenshot: str,
        user_id: Optional[str] = None,
        nickname: Optional[str] = None,
        avatar: Optional[str] = None
    ) -> Dict[str, Any]:
        body = _drop_none(screenshot=screenshot, userId=user_id, nickname=nickname, avatar=avatar)
        return await self._client.post("/user/donation", body)

    async def report_content(
        self,
        target_id: str,
        kind: str,
        reason: str,
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        body = _drop_none(targetId=target_id, type=kind, reason=reason, description=description)
        return await self._client.post("/user/report", body)


class AuthApi:
    def __init__(self, client: RequestClient):
        self._client = client

    async def login(
        self,
        username: str,
        password: Optional[str] = None,
        captcha_key: Optional[str] = None,
        captcha_code: Optional[str] = None
    ) -> AuthSession:
        body = _drop_none(
            username=username, password=password,
            captchaKey=captcha_key, captchaCode=captcha_code
        )
        return await self._client.post("/auth/login", body)

    async def register(self, username: str, email: str, password: Optional[str] = None) -> User:
        body = _drop_none(username=username, email=email, password=password)
        return await self._client.post("/auth/register", body)

    async def get_captcha(self) -> Captcha:
        return await self._client.get("/auth/captcha")

    async def send_verify_code(self, email: str) -> Dict[str, Any]:
        return await self._client.post("/auth/send-code", {"email": email})


class CommunityApi:
    def __init__(self, client: RequestClient):
        self._client = client

    async def get_posts(self) -> Tuple[CommunityPost, ...]:
        return await self._client.get("/community")


class MusicApi:
    def __init__(self, client: RequestClient):
        self._client = client

    async def get_list(self) -> Tuple[Song, ...]:
        return await self._client.get("/music")


class SystemApi:
    def __init__(self, client: RequestClient):
        self._client = client

    async def get_announcements(self) -> Tuple[Announcement, ...]:
        return await self._client.get("/announcements")

    async def get_hot_searches(self) -> Tuple[str, ...]:
        return await self._client.get("/search/hot")

    async def get_friend_links(self) -> Tuple[FriendLink, ...]:
        return await self._client.get("/friend-links")

    async def apply_friend_link(self, name: str, url: str, avatar: str, desc: str) -> Dict[str, Any]:
        body = {"name": name, "url": url, "avatar": avatar, "desc": desc}
        return await self._client.post("/friend-links/apply", body)


class AiApi:
    def __init__(self, client: RequestClient):
        self._client = client

    async def get_history(self) -> Tuple[AiHistoryEntry, ...]:
        return await self._client.get("/ai/history")

    async def update_usage(self, user_id: str) -> Dict[str, int]:
        return await self._client.post("/ai/usage", {"userId": user_id})


@dataclass(frozen=True)
class ApiFacades:
    """All facades over one client; injected into the store and pages."""
    client: RequestClient
    articles: ArticleApi
    users: UserApi
    auth: AuthApi
    community: CommunityApi
    music: MusicApi
    system: SystemApi
    ai: AiApi

    @classmethod
    def from_client(cls, client: RequestClient) -> ApiFacades:
        return cls(
            client=client,
            articles=ArticleApi(client),
            users=UserApi(client),
            auth=AuthApi(client),
            community=CommunityApi(client),
            music=MusicApi(client),
            system=SystemApi(client),
            ai=AiApi(client),
        )
