import typing
from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated

from pydantic import Field

if typing.TYPE_CHECKING:
    BookId = typing.NewType("BookId", str)
    CustomerId = typing.NewType("CustomerId", str)
    CacheId = typing.NewType("CacheId", int)
    Score = typing.NewType("Score", float)
else:
    _BookIdStr = Annotated[str, Field(min_length=1, max_length=36)]
    BookId = typing.NewType("BookId", _BookIdStr)

    _CustomerIdStr = Annotated[str, Field(min_length=1, max_length=64)]
    CustomerId = typing.NewType("CustomerId", _CustomerIdStr)

    _CacheIdInt = Annotated[int, Field(ge=1)]
    CacheId = typing.NewType("CacheId", _CacheIdInt)

    # Unbounded above: similar scores carry bonuses, trending scores are raw popularity.
    _ScoreFloat = Annotated[float, Field(ge=0.0)]
    Score = typing.NewType("Score", _ScoreFloat)


class RecommendationType(StrEnum):
    PERSONALIZED = "personalized"
    SIMILAR = "similar"
    TRENDING = "trending"
    FREQUENTLY_BOUGHT_TOGETHER = "frequently_bought_together"
    COMBO_SUGGESTION = "combo_suggestion"


class Algorithm(StrEnum):
    CONTENT_BASED = "content_based"
    HYBRID = "hybrid"
    POPULARITY = "popularity"


class EngagementCounter(StrEnum):
    VIEWS = "views"
    CLICKS = "clicks"
    CONVERSIONS = "conversions"


@dataclass(frozen=True, slots=True)
class NamedRef:
    id: str
    name: str


# Category and author may arrive resolved or as a bare identifier.
Reference = NamedRef | str


@dataclass(frozen=True, slots=True)
class CatalogBook:
    id: BookId
    title: str
    description: str | None = None
    category: Reference | None = None
    author: Reference | None = None
    average_rating: float = 0.0
    view_count: int = 0
    purchase_count: int = 0
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class BookFilter:
    """Candidate query for the catalog.

    ``category_id`` and ``author_id`` combine with OR: a book matching either is
    returned. With both unset any active book qualifies.
    """

    exclude_ids: frozenset[str] = frozenset()
    category_id: str | None = None
    author_id: str | None = None
    by_popularity: bool = False


def reference_id(ref: Reference | None) -> str | None:
    if ref is None:
        return None
    if isinstance(ref, NamedRef):
        return ref.id
    return str(ref)


def reference_name(ref: Reference | None) -> str | None:
    if ref is None:
        return None
    if isinstance(ref, NamedRef):
        return ref.name
    return str(ref)
