"""Offset/limit pagination and free-text search helpers shared by list endpoints."""
import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import Query as ORMQuery

from fleet_api.core.config import settings

T = TypeVar("T")


class PaginationMeta(BaseModel):
    page: int
    limit: int
    offset: int
    total: int
    pages: int


class Page(BaseModel, Generic[T]):
    data: List[T]
    pagination: PaginationMeta


@dataclass
class PageParams:
    offset: int = 0
    limit: int = 10
    search: Optional[str] = None

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1 if self.limit > 0 else 1


def page_params(
    offset: int = Query(0, ge=0),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    search: Optional[str] = Query(None, max_length=100),
) -> PageParams:
    """FastAPI dependency parsing ``offset``, ``limit`` and ``search``."""
    search = search.strip() if search else None
    return PageParams(offset=offset, limit=limit, search=search or None)


def pagination_meta(params: PageParams, total: int) -> dict:
    return {
        "page": params.page,
        "limit": params.limit,
        "offset": params.offset,
        "total": total,
        "pages": math.ceil(total / params.limit) if params.limit else 0,
    }


def paginated(items: Sequence[Any], total: int, params: PageParams) -> dict:
    """List response envelope."""
    return {"data": list(items), "pagination": pagination_meta(params, total)}


def apply_search(query: ORMQuery, search: Optional[str], columns: Sequence[Any]) -> ORMQuery:
    """Case-insensitive substring match over any of ``columns``."""
    if not search or not columns:
        return query
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return query.filter(or_(*[column.ilike(pattern, escape="\\") for column in columns]))


def paginate_query(query: ORMQuery, params: PageParams) -> Tuple[List[Any], int]:
    """Return one page of ``query`` plus the unpaginated total."""
    total = query.order_by(None).count()
    if total == 0:
        return [], 0
    return query.offset(params.offset).limit(params.limit).all(), total


def paginate_list(
    items: List[T], params: PageParams, transform: Optional[Callable[[T], Any]] = None
) -> Tuple[List[Any], int]:
    """Slice an in-memory result the same way ``paginate_query`` slices SQL."""
    window = items[params.offset:params.offset + params.limit]
    if transform:
        window = [transform(item) for item in window]
    return window, len(items)
