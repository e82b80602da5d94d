"""
Article Query Resolution

RESPONSIBILITY: Filtering, search and pagination over the article collection
ALLOWED INPUTS: ArticleQuery built from request parameters
OUTPUTS: ArticlePage with totals computed from the filtered set

WHAT THIS LAYER MUST NOT DO:
============================
- Mutate storage
- Sleep or await
- Return a default page in place of a validation error

FILTER ORDER:
=============
1. Free text (case-insensitive substring over title, summary, tags)
2. Category equality ("All" disables the filter)
3. Tag membership (stored with or without a leading marker)
4. Author (userId)
5. Favorites of userId
6. Pagination (1-indexed)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from ..contracts import (
    Article, ArticlePage, ValidationError, ErrorCode
)
from ..storage import StorageBackend


ALL_CATEGORIES = "All"
TAG_MARKER = "#"

ArticlePredicate = Callable[[Article], bool]


# =============================================================================
# QUERY CONTRACT
# =============================================================================

@dataclass(frozen=True)
class ArticleQuery:
    """
    Parsed ``GET /articles`` parameters.

    ``limit=None`` means unbounded: every matching article on one page.
    """
    q: Optional[str] = None
    category: Optional[str] = None
    tag: Optional[str] = None
    page: int = 1
    limit: Optional[int] = None
    user_id: Optional[str] = None
    favorites: bool = False

    def __post_init__(self):
        if self.page < 1:
            raise ValidationError(
                f"page must be >= 1, got {self.page}",
                ErrorCode.INVALID_PAGINATION
            )
        if self.limit is not None and self.limit < 1:
            raise ValidationError(
                f"limit must be >= 1, got {self.limit}",
                ErrorCode.INVALID_PAGINATION
            )
        if self.favorites and not self.user_id:
            raise ValidationError(
                "userId is required when favorites is set",
                ErrorCode.MISSING_FIELD
            )

    @classmethod
    def from_params(cls, params: Optional[Mapping[str, Any]]) -> ArticleQuery:
        """Build a query from wire parameters (camelCase keys, loose types)."""
        params = params or {}
        return cls(
            q=_optional_str(params.get("q")),
            category=_optional_str(params.get("category")),
            tag=_optional_str(params.get("tag")),
            page=_to_int(params.get("page"), "page", default=1),
            limit=_to_int(params.get("limit"), "limit", default=None),
            user_id=_optional_str(params.get("userId")),
            favorites=to_bool(params.get("favorites")),
        )


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _to_int(value: Any, name: str, default: Optional[int]) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"{name} must be an integer, got {value!r}",
            ErrorCode.INVALID_PAGINATION
        )


def to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


# =============================================================================
# PREDICATES
# =============================================================================

def strip_marker(tag: str) -> str:
    return tag[len(TAG_MARKER):] if tag.startswith(TAG_MARKER) else tag


def matches_text(q: str) -> ArticlePredicate:
    needle = q.lower()

    def predicate(article: Article) -> bool:
        return (
            needle in article.title.lower()
            or needle in article.summary.lower()
            or any(needle in tag.lower() for tag in article.tags)
        )
    return predicate


def matches_category(category: str) -> Optional[ArticlePredicate]:
    if category == ALL_CATEGORIES:
        return None
    return lambda article: article.category == category


def matches_tag(tag: str) -> ArticlePredicate:
    wanted = strip_marker(tag)
    return lambda article: any(strip_marker(t) == wanted for t in article.tags)


def build_predicates(
    query: ArticleQuery,
    storage: Optional[StorageBackend] = None
) -> List[ArticlePredicate]:
    """Predicates in application order; disabled filters are omitted."""
    predicates: List[ArticlePredicate] = []

    if query.q:
        predicates.append(matches_text(query.q))

    if query.category:
        category_filter = matches_category(query.category)
        if category_filter:
            predicates.append(category_filter)

    if query.tag:
        predicates.append(matches_tag(query.tag))

    if query.user_id and not query.favorites:
        author = query.user_id
        predicates.append(lambda article: article.author_id == author)

    if query.favorites and storage is not None:
        favorite_ids = storage.favorites_of(query.user_id)
        predicates.append(lambda article: article.id in favorite_ids)

    return predicates


def filter_articles(
    articles: Iterable[Article],
    predicates: List[ArticlePredicate]
) -> Tuple[Article, ...]:
    result = tuple(articles)
    for predicate in predicates:
        result = tuple(a for a in result if predicate(a))
    return result


def paginate(
    articles: Tuple[Article, ...],
    page: int,
    limit: Optional[int]
) -> ArticlePage:
    total = len(articles)
    effective_limit = limit if limit is not None else max(total, 1)
    start = (page - 1) * effective_limit
    return ArticlePage.build(
        items=articles[start:start + effective_limit],
        total=total,
        page=page,
        limit=effective_limit
    )


# =============================================================================
# QUERY ENGINE
# =============================================================================

class ArticleQueryEngine:
    """
    Resolves article list queries against a storage backend.

    Deterministic: the same storage contents and query always
    produce the same page.
    """

    def __init__(self, storage: StorageBackend):
        self._storage = storage

    def execute(self, query: ArticleQuery) -> ArticlePage:
        predicates = build_predicates(query, self._storage)
        matched = filter_articles(self._storage.list_articles(), predicates)
        return paginate(matched, query.page, query.limit)

    def execute_params(self, params: Optional[Mapping[str, Any]]) -> ArticlePage:
        return self.execute(ArticleQuery.from_params(params))
