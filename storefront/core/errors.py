# storefront/core/errors.py
# Доменные исключения сервисов и их отображение в HTTP-ответы.
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from storefront.core.config import settings

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers: dict[str, str] | None = None

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND


class BadRequestError(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(StorefrontError):
    status_code = status.HTTP_409_CONFLICT


async def storefront_error_handler(request: Request, exc: StorefrontError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    """Глобальный обработчик ошибок."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "error",
            "message": "Internal server error",
            "detail": str(exc) if settings.ENVIRONMENT == "development" else "An error occurred",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
