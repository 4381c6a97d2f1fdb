from app.database.database import Base
from sqlalchemy import Column, Integer, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship
from app.common.mixins import TimestampMixin
import enum


class CreditStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    VOID = "VOID"


class Credit(Base, TimestampMixin):
    """Pago recibido del cliente fuera de una factura"""
    __tablename__ = "credits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    previous_balance = Column(Numeric(15, 2), nullable=False)  # Se restaura al anular
    amount_paid_by_customer = Column(Numeric(15, 2), nullable=False)
    final_balance = Column(Numeric(15, 2), nullable=False)     # previous_balance - amount_paid_by_customer

    status = Column(Enum(CreditStatus), nullable=False, default=CreditStatus.ACTIVE)

    customer = relationship("Customer")
