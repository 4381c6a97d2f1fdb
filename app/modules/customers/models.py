from app.database.database import Base
from sqlalchemy import Column, Integer, String, Numeric, UniqueConstraint
from app.common.mixins import TimestampMixin


class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=False)
    firm = Column(String(200), nullable=False)
    address = Column(String(500), nullable=True)

    # Saldo corriente: positivo = el cliente debe, negativo = saldo a favor.
    # Solo lo modifican las operaciones de posting de facturas y créditos
    balance = Column(Numeric(15, 2), nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("phone", name="uq_customer_phone"),
        UniqueConstraint("firm", name="uq_customer_firm"),
    )
