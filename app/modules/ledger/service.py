"""
Consultas de solo lectura sobre el ledger de clientes

Ninguna función de este módulo modifica saldos ni toma bloqueos.
"""

from sqlalchemy.orm import Session
from decimal import Decimal
from typing import List
import logging

from app.core.exceptions import NotFoundError
from app.modules.customers.models import Customer
from app.modules.customers.schemas import CustomerOut
from app.modules.invoices.models import Invoice
from app.modules.credits.models import Credit
from app.modules.invoices.calculator import to_money
from app.modules.ledger.schemas import CustomerHistory, LedgerOverview, TransactionEntry, TransactionType

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(self, db: Session):
        self.db = db

    def get_ledger_overview(self) -> LedgerOverview:
        """
        Clientes con saldo distinto de cero, de mayor a menor saldo.

        total_owed suma solo los saldos positivos: lo que los clientes
        le deben al negocio. Los saldos a favor del cliente no lo reducen.
        """
        customers = (
            self.db.query(Customer)
            .filter(Customer.balance != 0)
            .order_by(Customer.balance.desc(), Customer.id)
            .all()
        )
        total_owed = sum((c.balance for c in customers if c.balance > 0), Decimal('0'))

        return LedgerOverview(
            customers=[CustomerOut.model_validate(c) for c in customers],
            total_owed=to_money(total_owed),
            customer_count=len(customers)
        )

    def get_customer_history(self, customer_id: int) -> CustomerHistory:
        """Facturas y créditos del cliente, del más reciente al más antiguo"""
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError("Cliente", customer_id)

        invoices = self.db.query(Invoice).filter(Invoice.customer_id == customer_id).all()
        credits = self.db.query(Credit).filter(Credit.customer_id == customer_id).all()

        transactions: List[TransactionEntry] = [
            TransactionEntry(
                type=TransactionType.INVOICE,
                id=inv.id,
                date=inv.created_at,
                amount=inv.final_amount,
                paid=inv.paid_by_customer,
                previous_balance=inv.cust_prev_balance,
                new_balance=inv.remaining_balance,
                status=inv.status.value
            )
            for inv in invoices
        ]
        transactions.extend(
            TransactionEntry(
                type=TransactionType.CREDIT,
                id=cr.id,
                date=cr.created_at,
                amount=Decimal('0'),
                paid=cr.amount_paid_by_customer,
                previous_balance=cr.previous_balance,
                new_balance=cr.final_balance,
                status=cr.status.value
            )
            for cr in credits
        )
        transactions.sort(key=lambda t: (t.date, t.id), reverse=True)

        logger.debug(
            f"Historial del cliente {customer_id}: {len(invoices)} facturas, {len(credits)} créditos"
        )
        return CustomerHistory(
            customer=CustomerOut.model_validate(customer),
            transactions=transactions,
            total_invoices=len(invoices),
            total_credits=len(credits)
        )
