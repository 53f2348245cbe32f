"""
Business errors raised by the service layer.

Services raise these instead of HTTPException so the same rules can run from
the migrator CLI. Each FastAPI sub-app registers `business_exception_handler`
to turn them into JSON responses.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class BusinessException(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, code: str, message: str | None = None, status_code: int | None = None):
        super().__init__(message or code)
        self.code = code
        self.message = message or code
        if status_code is not None:
            self.status_code = status_code


class EntityNotFoundException(BusinessException):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, key):
        super().__init__(f"{entity}NotFound", f"{entity} {key} not found")


class ConflictException(BusinessException):
    status_code = status.HTTP_409_CONFLICT


class InvalidTransitionException(ConflictException):
    pass


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    logger.warning(
        "business_rule_violated",
        code=exc.code,
        detail=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BusinessException, business_exception_handler)
