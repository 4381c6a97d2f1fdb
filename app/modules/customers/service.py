"""
Servicios de negocio para el módulo de Clientes

Implementa:
- Registro de clientes con saldo de apertura
- Unicidad de teléfono y firma
- Actualización de datos de contacto (nunca del saldo)
- Borrado protegido: no se elimina un cliente con facturas o créditos
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from decimal import Decimal
from typing import Optional
import logging

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ReferentialError, ValidationError
from app.common.validators import clean_required_text, normalize_phone, validate_phone
from app.modules.customers.models import Customer
from app.modules.customers.schemas import CustomerCreate, CustomerUpdate, CustomerOut
from app.modules.invoices.calculator import to_money

logger = logging.getLogger(__name__)


class CustomerService:
    """Servicio principal para gestión de clientes"""

    def __init__(self, db: Session):
        self.db = db

    def _check_unique(self, phone: Optional[str], firm: Optional[str], exclude_id: Optional[int] = None):
        conditions = []
        if phone:
            conditions.append(Customer.phone == phone)
        if firm:
            conditions.append(Customer.firm == firm)
        if not conditions:
            return

        query = self.db.query(Customer).filter(or_(*conditions))
        if exclude_id is not None:
            query = query.filter(Customer.id != exclude_id)
        existing = query.first()

        if existing:
            field = "teléfono" if phone and existing.phone == phone else "firma"
            raise ConflictError(
                f"Ya existe un cliente con este {field}",
                details={"customer_id": existing.id}
            )

    def create_customer(self, customer_data: CustomerCreate) -> Customer:
        """Registrar un nuevo cliente"""
        self._check_unique(customer_data.phone, customer_data.firm)

        customer = Customer(
            name=customer_data.name,
            phone=customer_data.phone,
            firm=customer_data.firm,
            address=clean_required_text(customer_data.address),
            balance=to_money(customer_data.balance or Decimal('0'))
        )

        try:
            self.db.add(customer)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Ya existe un cliente con este teléfono o firma") from e

        self.db.refresh(customer)
        logger.info(f"Cliente {customer.id} registrado con saldo inicial {customer.balance}")
        return customer

    def get_customer_by_id(self, customer_id: int) -> Customer:
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError("Cliente", customer_id)
        return customer

    def get_customers(self, search: Optional[str] = None, limit: int = 100, offset: int = 0) -> dict:
        """Listar clientes, con búsqueda opcional por nombre o teléfono"""
        limit = min(limit, settings.MAX_PAGE_SIZE)
        query = self.db.query(Customer)

        if search:
            search_term = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(search_term),
                    Customer.phone.ilike(search_term)
                )
            )

        total = query.count()
        customers = query.order_by(Customer.created_at.desc(), Customer.id.desc()).offset(offset).limit(limit).all()

        return {
            "customers": customers,
            "total": total,
            "limit": limit,
            "offset": offset
        }

    def update_customer(self, customer_id: int, customer_update: CustomerUpdate) -> Customer:
        """Actualizar datos del cliente. El saldo queda fuera."""
        customer = self.get_customer_by_id(customer_id)
        data = customer_update.model_dump(exclude_unset=True)

        if not data:
            raise ValidationError("No hay campos para actualizar")

        for field in ("name", "firm"):
            if field in data:
                value = clean_required_text(data[field])
                if value is None:
                    raise ValidationError(f"El campo {field} es requerido")
                data[field] = value

        if "phone" in data:
            if not data["phone"] or not validate_phone(data["phone"]):
                raise ValidationError("Formato de teléfono inválido")
            data["phone"] = normalize_phone(data["phone"])

        if "address" in data:
            data["address"] = clean_required_text(data["address"])

        self._check_unique(data.get("phone"), data.get("firm"), exclude_id=customer_id)

        for field, value in data.items():
            setattr(customer, field, value)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Ya existe un cliente con este teléfono o firma") from e

        self.db.refresh(customer)
        return customer

    def delete_customer(self, customer_id: int) -> CustomerOut:
        """Eliminar un cliente sin facturas ni créditos asociados"""
        from app.modules.invoices.models import Invoice
        from app.modules.credits.models import Credit

        customer = self.get_customer_by_id(customer_id)

        invoice_count = self.db.query(Invoice).filter(Invoice.customer_id == customer_id).count()
        credit_count = self.db.query(Credit).filter(Credit.customer_id == customer_id).count()
        if invoice_count or credit_count:
            raise ReferentialError(
                f"No se puede eliminar el cliente: tiene {invoice_count} factura(s) y {credit_count} crédito(s)",
                details={"invoices": invoice_count, "credits": credit_count}
            )

        snapshot = CustomerOut.model_validate(customer)
        self.db.delete(customer)
        self.db.commit()
        logger.info(f"Cliente {customer_id} eliminado")
        return snapshot
