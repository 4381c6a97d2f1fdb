"""
Primitivas de posting sobre el saldo del cliente

El saldo de un cliente solo se modifica a través de estas funciones y
siempre dentro de un posting_transaction.
"""
from decimal import Decimal
from datetime import datetime
import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import InvalidStateError, NotFoundError
from app.modules.customers.models import Customer
from app.modules.invoices.calculator import to_money

logger = logging.getLogger(__name__)


def lock_customer(db: Session, customer_id: int) -> Customer:
    """
    Leer el cliente bloqueando su fila hasta el fin de la transacción.

    En PostgreSQL emite SELECT ... FOR UPDATE. En SQLite el FOR UPDATE se
    ignora y el bloqueo lo da el BEGIN IMMEDIATE del motor. El saldo se lee
    siempre de la base, nunca de la copia que la sesión ya tenga.
    """
    customer = (
        db.query(Customer)
        .filter(Customer.id == customer_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not customer:
        raise NotFoundError("Cliente", customer_id)
    return customer


def set_balance(customer: Customer, new_balance: Decimal, reason: str) -> Decimal:
    """Asignar el nuevo saldo y devolver el anterior"""
    old_balance = customer.balance
    customer.balance = to_money(new_balance)
    logger.info(
        f"Saldo del cliente {customer.id}: {old_balance} -> {customer.balance} ({reason})"
    )
    return old_balance


def has_newer_transactions(db: Session, customer_id: int, created_at: datetime,
                           exclude_invoice_id: int = None, exclude_credit_id: int = None) -> bool:
    """¿Hay facturas o créditos ACTIVE del cliente posteriores a `created_at`?"""
    from app.modules.invoices.models import Invoice, InvoiceStatus
    from app.modules.credits.models import Credit, CreditStatus

    invoices = db.query(Invoice.id).filter(
        Invoice.customer_id == customer_id,
        Invoice.status == InvoiceStatus.ACTIVE,
        Invoice.created_at > created_at,
    )
    if exclude_invoice_id is not None:
        invoices = invoices.filter(Invoice.id != exclude_invoice_id)
    if invoices.first() is not None:
        return True

    credits = db.query(Credit.id).filter(
        Credit.customer_id == customer_id,
        Credit.status == CreditStatus.ACTIVE,
        Credit.created_at > created_at,
    )
    if exclude_credit_id is not None:
        credits = credits.filter(Credit.id != exclude_credit_id)
    return credits.first() is not None


def guard_void_order(db: Session, customer_id: int, created_at: datetime, label: str,
                     exclude_invoice_id: int = None, exclude_credit_id: int = None):
    """
    Anular una transacción que no es la última deja el saldo en el valor
    previo a ella, descartando el efecto de las posteriores.

    Por defecto solo se registra un WARNING; con STRICT_VOID_ORDER se rechaza.
    """
    if not has_newer_transactions(db, customer_id, created_at, exclude_invoice_id, exclude_credit_id):
        return

    if settings.STRICT_VOID_ORDER:
        raise InvalidStateError(
            f"No se puede anular {label}: el cliente {customer_id} tiene transacciones posteriores",
            details={"customer_id": customer_id}
        )

    logger.warning(
        f"Anulando {label} del cliente {customer_id} con transacciones posteriores activas; "
        f"el saldo vuelve al valor previo a {label}"
    )
