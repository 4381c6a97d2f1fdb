from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from datetime import datetime

from app.modules.credits.models import CreditStatus


class CreditCreate(BaseModel):
    # Puede ser negativo: un crédito negativo aumenta el saldo
    amount_paid_by_customer: Decimal = Field(..., description="Monto pagado por el cliente")

    @field_validator('amount_paid_by_customer')
    @classmethod
    def check_finite(cls, v):
        if not v.is_finite():
            raise ValueError('El monto debe ser un número finito')
        return v


class CreditOut(BaseModel):
    id: int
    customer_id: int
    previous_balance: Decimal
    amount_paid_by_customer: Decimal
    final_balance: Decimal
    status: CreditStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CreditList(BaseModel):
    credits: List[CreditOut]
    total: int
    limit: int
    offset: int


class CreditFilters(BaseModel):
    customer_id: Optional[int] = None
    status: Optional[CreditStatus] = None
