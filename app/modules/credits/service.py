"""
Servicios de negocio para el módulo de Créditos

final_balance = previous_balance - amount_paid_by_customer. El signo del
monto no se restringe.
"""

from sqlalchemy.orm import Session
from sqlalchemy import desc
import logging

from app.core.config import settings
from app.core.exceptions import AlreadyVoidedError, NotFoundError
from app.database.transaction import posting_transaction
from app.modules.credits.models import Credit, CreditStatus
from app.modules.credits.schemas import CreditCreate, CreditFilters
from app.modules.invoices.calculator import to_money
from app.modules.ledger.posting import lock_customer, set_balance, guard_void_order

logger = logging.getLogger(__name__)


class CreditService:
    def __init__(self, db: Session):
        self.db = db

    def create_credit(self, customer_id: int, credit_data: CreditCreate) -> Credit:
        """Registrar un pago del cliente y descontarlo de su saldo"""
        with posting_transaction(self.db, "crear crédito"):
            customer = lock_customer(self.db, customer_id)

            previous_balance = customer.balance
            amount = to_money(credit_data.amount_paid_by_customer)
            final_balance = to_money(previous_balance - amount)

            credit = Credit(
                customer_id=customer.id,
                previous_balance=previous_balance,
                amount_paid_by_customer=amount,
                final_balance=final_balance,
                status=CreditStatus.ACTIVE
            )
            self.db.add(credit)
            self.db.flush()

            set_balance(customer, final_balance, f"crédito {credit.id}")

        self.db.refresh(credit)
        logger.info(f"Crédito {credit.id} creado para cliente {customer_id}: monto={amount}")
        return credit

    def void_credit(self, credit_id: int) -> Credit:
        """Anular crédito: el saldo vuelve a previous_balance"""
        with posting_transaction(self.db, "anular crédito"):
            credit = self._lock_credit(credit_id)
            if credit.status == CreditStatus.VOID:
                raise AlreadyVoidedError("Crédito", credit_id)

            customer = lock_customer(self.db, credit.customer_id)
            guard_void_order(
                self.db, customer.id, credit.created_at, f"el crédito {credit.id}",
                exclude_credit_id=credit.id
            )

            credit.status = CreditStatus.VOID
            set_balance(customer, credit.previous_balance, f"anulación de crédito {credit.id}")

        self.db.refresh(credit)
        logger.info(f"Crédito {credit_id} anulado")
        return credit

    def _lock_credit(self, credit_id: int) -> Credit:
        """Leer el crédito con su fila bloqueada y el estado confirmado en la base"""
        credit = (
            self.db.query(Credit)
            .filter(Credit.id == credit_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not credit:
            raise NotFoundError("Crédito", credit_id)
        return credit

    def get_credit_by_id(self, credit_id: int) -> Credit:
        credit = self.db.query(Credit).filter(Credit.id == credit_id).first()
        if not credit:
            raise NotFoundError("Crédito", credit_id)
        return credit

    def get_credits(self, filters: CreditFilters, limit: int = 100, offset: int = 0) -> dict:
        limit = min(limit, settings.MAX_PAGE_SIZE)
        query = self.db.query(Credit)

        if filters.customer_id:
            query = query.filter(Credit.customer_id == filters.customer_id)
        if filters.status:
            query = query.filter(Credit.status == filters.status)

        total = query.count()
        credits = query.order_by(desc(Credit.created_at), desc(Credit.id)).offset(offset).limit(limit).all()
        return {"credits": credits, "total": total, "limit": limit, "offset": offset}
