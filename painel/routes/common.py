import logging
from typing import NoReturn

from fastapi import HTTPException

from painel.services.errors import (
    NotFoundError,
    ServiceError,
    UnexpectedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def raise_http_error(exc: ServiceError) -> NoReturn:
    """Translate an engine error into the matching HTTP response."""
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, UnexpectedError):
        logger.error("Falha interna: %s", exc)
    else:
        logger.error("Erro de servico nao mapeado: %r", exc)
    raise HTTPException(status_code=500, detail="Erro interno") from exc
