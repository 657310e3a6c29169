from contextlib import contextmanager
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.exceptions import AppError, Conflict, InternalError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, action: str, conflict_detail: Optional[str] = None):
    """
    Fronteira transacional das operações de escrita.

    Commit ao final do bloco; qualquer erro desfaz tudo antes de propagar.
    Erros já classificados sobem intactos, IntegrityError vira Conflict e o
    resto é embrulhado em InternalError com a mensagem original.
    """
    try:
        yield
        db.commit()
    except AppError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Violação de integridade ao {action}: {e.orig}")
        raise Conflict(conflict_detail or f"Violação de integridade ao {action}.") from e
    except Exception as e:
        db.rollback()
        logger.exception(f"Erro inesperado ao {action}")
        raise InternalError(f"Falha ao {action}: {e}") from e
