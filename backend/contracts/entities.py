"""
Entity Contracts

Immutable data objects returned by the query layer.

All entities are frozen dataclasses. Callers cannot mutate the
in-memory dataset through a returned reference; the only way to
change stored data is a POST through the request client.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, asdict, replace
from typing import Any, Dict, Mapping, Optional, Tuple
import math

from .base import (
    Role, VipType, CultivationLevel, AnnouncementKind,
    ValidationError, ErrorCode
)


# =============================================================================
# ACCOUNT
# =============================================================================

@dataclass(frozen=True)
class User:
    """Session/profile record. Owned by the store once logged in."""
    id: str
    name: str
    avatar: str
    role: Role = Role.USER
    ai_usage: int = 0
    username: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    points: int = 0
    cover_image: Optional[str] = None
    followers_count: int = 0
    following_count: int = 0
    total_likes: int = 0
    level: CultivationLevel = CultivationLevel.QI_REFINING
    vip_type: VipType = VipType.NONE
    is_following: bool = False

    @property
    def is_vip(self) -> bool:
        return self.role in (Role.VIP, Role.ADMIN)

    def merged(self, partial: Mapping[str, Any]) -> User:
        """Shallow merge; fields absent from ``partial`` are preserved."""
        return replace(self, **coerce_user_fields(partial))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["role"] = self.role.value
        data["vip_type"] = self.vip_type.value
        data["level"] = int(self.level)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        return cls(**coerce_user_fields(data))


USER_FIELDS = frozenset(f.name for f in fields(User))


def coerce_user_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate and coerce a user field mapping.

    Unknown keys are rejected rather than ignored. Enum fields accept
    either the enum member or its serialized value.
    """
    unknown = set(data) - USER_FIELDS
    if unknown:
        raise ValidationError(
            f"Unknown user field(s): {', '.join(sorted(unknown))}",
            ErrorCode.INVALID_FIELD
        )

    coerced = dict(data)
    try:
        if "role" in coerced:
            coerced["role"] = Role(coerced["role"])
        if "vip_type" in coerced:
            coerced["vip_type"] = VipType(coerced["vip_type"])
        if "level" in coerced:
            coerced["level"] = CultivationLevel(coerced["level"])
    except ValueError as e:
        raise ValidationError(str(e), ErrorCode.INVALID_FIELD) from e
    return coerced


@dataclass(frozen=True)
class AuthSession:
    """Result of a credential login: the user plus a session token."""
    user: User
    token: str


@dataclass(frozen=True)
class Captcha:
    key: str
    image: str


@dataclass(frozen=True)
class CheckIn:
    points: int
    total: int


# =============================================================================
# CONTENT
# =============================================================================

@dataclass(frozen=True)
class Comment:
    id: str
    user: User
    content: str
    date: str
    likes: int = 0
    replies: Tuple[Comment, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Article:
    id: str
    title: str
    summary: str
    content: str
    category: str
    date: str
    cover: str = ""
    views: int = 0
    likes: int = 0
    tags: Tuple[str, ...] = field(default_factory=tuple)
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    author_avatar: Optional[str] = None
    author_level: Optional[CultivationLevel] = None


@dataclass(frozen=True)
class ArticlePage:
    """
    Paginated list response.

    ``total`` and ``total_pages`` always describe the filtered set,
    never the unfiltered collection.
    """
    items: Tuple[Article, ...]
    total: int
    page: int
    limit: int
    total_pages: int

    @staticmethod
    def build(items: Tuple[Article, ...], total: int, page: int, limit: int) -> ArticlePage:
        return ArticlePage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit)
        )


@dataclass(frozen=True)
class CommunityPost:
    id: str
    author: User
    content: str
    likes: int
    comments: int
    time_ago: str


@dataclass(frozen=True)
class Song:
    id: str
    title: str
    artist: str
    cover: str
    duration: int
    lyrics: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Announcement:
    id: int
    title: str
    summary: str
    content: str
    kind: AnnouncementKind
    date: str
    publisher: str


@dataclass(frozen=True)
class AiHistoryEntry:
    id: str
    title: str
    date: str


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    desc: str
    color: str
    img: str


@dataclass(frozen=True)
class FriendLink:
    name: str
    url: str
    avatar: str
    desc: str


@dataclass(frozen=True)
class Danmaku:
    id: str
    text: str
    color: str
