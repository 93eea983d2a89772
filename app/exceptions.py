# app/exceptions.py
"""
Application errors and the FastAPI handlers that render them.

Every error is returned to the client as a JSON object with a single
``message`` field:

    ProductAPIError (base)
    ├── ValidationError   -> 400
    ├── NotFoundError     -> 404
    └── StoreError        -> 500

Unknown routes and unexpected exceptions are rendered the same way.
"""
import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ProductAPIError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)


class ValidationError(ProductAPIError):
    """Missing, malformed or duplicate field on create or update."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message)


class NotFoundError(ProductAPIError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Product not found"):
        super().__init__(message)


class StoreError(ProductAPIError):
    """The document store could not be read or written."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Document store failure"):
        super().__init__(message)


def format_validation_errors(errors: List[Dict[str, Any]]) -> str:
    """
    Summarise pydantic errors as one line, e.g.
    "Product validation failed: price: Field required, instock: Input should be a valid boolean"
    """
    parts = []
    for err in errors:
        # drop the leading "body" / "path" segment FastAPI adds to loc
        loc = [str(p) for p in err.get("loc", ())[1:]]
        field = ".".join(loc)
        msg = err.get("msg", "invalid value")
        parts.append(f"{field}: {msg}" if field else msg)
    return "Product validation failed: " + ", ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ProductAPIError)
    async def handle_product_api_error(request: Request, exc: ProductAPIError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = format_validation_errors(exc.errors())
        logger.info("%s %s rejected (400): %s", request.method, request.url.path, message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # unknown routes, wrong methods: same body shape as every other error
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("%s %s crashed: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": str(exc) or exc.__class__.__name__},
        )
