"""
Excepciones tipadas del ledger de clientes

Jerarquía:

    LedgerError
    +-- NotFoundError          (404) cliente, producto, factura o crédito inexistente
    +-- InvalidStateError      (400) operación sobre un registro anulado
    |   +-- AlreadyVoidedError
    |   +-- VoidedInvoiceError
    +-- ValidationError        (400) campo requerido ausente o inválido
    +-- ConflictError          (409) teléfono o firma duplicados
    +-- ReferentialError       (400) borrado de un registro referenciado
    +-- TransactionError       (500) falla de escritura dentro de una transacción

Los handlers de app.main convierten cualquier LedgerError en un ResponseEntity.
"""
from typing import Any, Optional

from fastapi import status


class LedgerError(Exception):
    """Error base. Lleva mensaje, código HTTP y datos estructurados opcionales."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Error interno del ledger"

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFoundError(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Recurso no encontrado"

    def __init__(self, resource: str, resource_id: Any = None):
        self.resource = resource
        self.resource_id = resource_id
        message = f"{resource} no encontrado"
        if resource_id is not None:
            message = f"{resource} {resource_id} no encontrado"
        super().__init__(message)


class InvalidStateError(LedgerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operación no permitida en el estado actual"


class AlreadyVoidedError(InvalidStateError):
    def __init__(self, resource: str, resource_id: Any):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} {resource_id} ya está anulado")


class VoidedInvoiceError(InvalidStateError):
    def __init__(self, invoice_id: Any):
        self.invoice_id = invoice_id
        super().__init__(f"No se puede actualizar la factura anulada {invoice_id}")


class ValidationError(LedgerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Datos inválidos"


class ConflictError(LedgerError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "El registro ya existe"


class ReferentialError(LedgerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "El registro está referenciado por otros registros"


class TransactionError(LedgerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "La transacción falló y fue revertida"
