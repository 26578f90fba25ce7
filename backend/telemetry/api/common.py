from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, status

from ..core.errors import MissingAPIKeyError, QueryValidationError, TransportError
from ..schemas import PageInfo, PaginationResponse, Total, total_to_json

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors() -> Iterator[None]:
    try:
        yield
    except QueryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except MissingAPIKeyError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except TransportError as exc:
        logger.error("Telemetry service call failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


def to_pagination(page: PageInfo, total: Total) -> PaginationResponse:
    return PaginationResponse(
        limit=page.limit,
        offset=page.offset,
        page=page.page,
        total=total_to_json(total),
    )
