from pydantic import BaseModel
from decimal import Decimal
from typing import List
from datetime import datetime
import enum

from app.modules.customers.schemas import CustomerOut


class TransactionType(str, enum.Enum):
    INVOICE = "invoice"
    CREDIT = "credit"


class TransactionEntry(BaseModel):
    """Factura o crédito normalizado para el historial del cliente"""
    type: TransactionType
    id: int
    date: datetime
    amount: Decimal            # final_amount de la factura; 0 para créditos
    paid: Decimal
    previous_balance: Decimal
    new_balance: Decimal
    status: str


class CustomerHistory(BaseModel):
    customer: CustomerOut
    transactions: List[TransactionEntry]
    total_invoices: int
    total_credits: int


class LedgerOverview(BaseModel):
    customers: List[CustomerOut]
    total_owed: Decimal        # Solo saldos positivos
    customer_count: int
