"""Mapping of domain errors onto HTTP responses."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.errors import AccountError, InternalError

logger = logging.getLogger(__name__)

# endpoint -> (status code, fixed message or None)
_INVALID_BODY_RESPONSES: dict[Callable[..., Any], tuple[int, str | None]] = {}


def first_error_message(errors: Sequence[Any]) -> str:
    """Render the first validator error as ``"<field>: <problem>"``."""
    if not errors:
        return "invalid request"
    first = errors[0]
    location = [part for part in first.get("loc", ()) if isinstance(part, str) and part != "body"]
    message = first.get("msg", "invalid request")
    return f"{'.'.join(location)}: {message}" if location else message


def on_invalid_body(status_code: int, message: str | None = None):
    """Choose the status (and optionally the message) an endpoint reports for an unparseable request."""

    def register(endpoint: Callable[..., Any]) -> Callable[..., Any]:
        _INVALID_BODY_RESPONSES[endpoint] = (status_code, message)
        return endpoint

    return register


@contextmanager
def internal_errors() -> Iterator[None]:
    """Re-raise anything outside the domain taxonomy as ``InternalError``."""
    try:
        yield
    except AccountError:
        raise
    except Exception as exc:
        logger.exception("unhandled error while serving request")
        raise InternalError(str(exc)) from exc


def _account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    status_code, message = _INVALID_BODY_RESPONSES.get(
        request.scope.get("endpoint"), (status.HTTP_400_BAD_REQUEST, None)
    )
    logger.info("rejected request %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status_code,
        content={"message": message or first_error_message(exc.errors())},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Render every ``AccountError`` and unparseable request as ``{"message": ...}``."""
    app.add_exception_handler(AccountError, _account_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
