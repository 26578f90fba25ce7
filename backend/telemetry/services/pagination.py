from __future__ import annotations

from typing import Any, Optional

from ..core.errors import InvalidPageParameter
from ..schemas.query import PageInfo


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _positive_int(value: Any, name: str) -> int:
    if not _is_int(value) or value <= 0:
        raise InvalidPageParameter(f"{name} must be a positive integer")
    return value


def _non_negative_int(value: Any, name: str) -> int:
    if not _is_int(value) or value < 0:
        raise InvalidPageParameter(f"{name} must be a non-negative integer")
    return value


def compute_page_info(
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    page: Optional[int] = None,
    default_limit: int = 50,
) -> PageInfo:
    """Canonicalize a ``limit``/``offset``/``page`` request.

    ``offset`` wins over ``page`` when both are given; the returned ``page``
    is always derived from the resolved offset.
    """
    resolved_limit = _positive_int(default_limit if limit is None else limit, "limit")
    offset_from_page = 0
    if page is not None:
        offset_from_page = (_positive_int(page, "page") - 1) * resolved_limit
    resolved_offset = _non_negative_int(offset_from_page if offset is None else offset, "offset")
    return PageInfo(
        limit=resolved_limit,
        offset=resolved_offset,
        page=resolved_offset // resolved_limit + 1,
    )
