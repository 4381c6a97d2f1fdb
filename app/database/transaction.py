"""
Transacciones atómicas para las operaciones de posting
"""
from contextlib import contextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import LedgerError, TransactionError

logger = logging.getLogger(__name__)


@contextmanager
def posting_transaction(db: Session, operation: str):
    """
    Ejecuta el bloque como una sola transacción.

    Commit al salir sin errores. Ante cualquier excepción se hace rollback:
    los LedgerError se propagan tal cual y los errores del motor se
    convierten en TransactionError.
    """
    try:
        yield db
        db.commit()
    except LedgerError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Rollback de '{operation}': {str(e)}", exc_info=True)
        raise TransactionError(
            f"Error en {operation}, la operación fue revertida",
            details={"operation": operation, "error": type(e).__name__}
        ) from e
    except Exception:
        db.rollback()
        logger.error(f"Rollback de '{operation}' por error inesperado", exc_info=True)
        raise
