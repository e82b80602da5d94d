"""
Domain API facades over the simulated request client.
"""

from .facades import (
    ArticleApi, UserApi, AuthApi, CommunityApi, MusicApi, SystemApi, AiApi,
    ApiFacades,
)

__all__ = [
    'ArticleApi', 'UserApi', 'AuthApi', 'CommunityApi', 'MusicApi',
    'SystemApi', 'AiApi', 'ApiFacades',
]
