"""
Contracts Module

Explicit data types and error states shared by the simulated backend
and its client-side consumers. Every layer imports types from here;
no layer imports another layer's implementation details.

DESIGN PRINCIPLES:
==================
1. Entities are immutable (frozen dataclasses)
2. Every rejection is a typed ApiError with status and message
3. Enumerations are closed
"""

from .base import (
    ErrorCode, ApiError, NotFoundError, ValidationError,
    Role, VipType, CultivationLevel, AnnouncementKind, FeedbackKind,
)
from .entities import (
    User, AuthSession, Captcha, CheckIn, Comment, Article, ArticlePage,
    CommunityPost, Song, Announcement, AiHistoryEntry, Category,
    FriendLink, Danmaku, USER_FIELDS, coerce_user_fields,
)

__all__ = [
    'ErrorCode', 'ApiError', 'NotFoundError', 'ValidationError',
    'Role', 'VipType', 'CultivationLevel', 'AnnouncementKind', 'FeedbackKind',
    'User', 'AuthSession', 'Captcha', 'CheckIn', 'Comment', 'Article',
    'ArticlePage', 'CommunityPost', 'Song', 'Announcement', 'AiHistoryEntry',
    'Category', 'FriendLink', 'Danmaku', 'USER_FIELDS', 'coerce_user_fields',
]
