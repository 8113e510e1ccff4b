"""
Application errors and the handlers that render them as ``{"error": ...}``.

Services raise these; routes never build error payloads by hand.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException


logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Erro interno."

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class AuthenticationMissing(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Não autorizado"


class ValidationConflict(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Dados em conflito."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Registro não encontrado"


class PersistenceFailure(AppError):
    """The database call failed; the original error is only logged."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Erro ao acessar o banco de dados."


async def _app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("app_error | method=%s url=%s message=%s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        field_path = " -> ".join(str(loc) for loc in err.get("loc", []))
        details.append(f"{field_path}: {err.get('msg', 'Invalid input')}")
    logger.warning("validation_error | method=%s url=%s errors=%s", request.method, request.url.path, details)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Dados inválidos", "details": details},
    )


async def _database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "database_error | method=%s url=%s exception_type=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Erro interno no banco de dados."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _database_exception_handler)
