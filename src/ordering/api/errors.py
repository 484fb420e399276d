"""Map domain exceptions onto HTTP responses.

Lookup walks the exception's MRO, so the most specific registered class wins:
a ``ConflictError`` is a ``ValidationError`` but answers 409, not 400.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.exceptions import ConflictError, NotAuthorized

ERROR_STATUS_CODES = {
    NotAuthorized: 403,
    ConflictError: 409,
    ObjectNotFoundError: 404,
    ValidationError: 400,
}


def status_code_for(exc: Exception) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


def _messages(exc: Exception) -> dict:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    return {"_entity": [str(exc)]}


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"status": "fail", "errors": _messages(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class in ERROR_STATUS_CODES:
        app.add_exception_handler(exc_class, domain_error_handler)
