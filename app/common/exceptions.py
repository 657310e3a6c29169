"""
Taxonomia de erros do domínio.

Cada tipo carrega um código estável e o status HTTP correspondente. Como
derivam de HTTPException, os serviços podem lançá-los diretamente e o FastAPI
os traduz sem camada extra; o handler registrado em app.main apenas
padroniza o corpo da resposta.
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """Erro classificado: mensagem legível + código estável"""

    code = "app_error"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.http_status, detail=detail)

    @property
    def message(self) -> str:
        return self.detail


class InvalidArgument(AppError):
    code = "invalid_argument"
    http_status = status.HTTP_400_BAD_REQUEST


class Forbidden(AppError):
    code = "forbidden"
    http_status = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    code = "not_found"
    http_status = status.HTTP_404_NOT_FOUND


class Conflict(AppError):
    code = "conflict"
    http_status = status.HTTP_409_CONFLICT


class InternalError(AppError):
    """Falha inesperada. O chamador recebe só a mensagem genérica; a causa fica nos logs."""

    code = "internal"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_detail = "Erro interno do servidor."

    def __init__(self, cause: str):
        super().__init__(detail=self.public_detail)
        self.cause = cause


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(f"{request.method} {request.url.path} -> {exc.cause}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": "error", "code": exc.code, "detail": exc.detail},
    )
