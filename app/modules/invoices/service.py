"""
Servicios de negocio para el módulo de Facturas

Implementa:
- Creación de facturas con líneas de producto, impuestos, empaque y transporte
- Snapshot del cliente y del precio de cada producto al facturar
- Actualización de facturas activas con recálculo de totales y saldo
- Anulación con restauración del saldo previo del cliente
- Consultas con filtros

Cada operación que mueve el saldo corre en un solo posting_transaction:
bloquea al cliente, calcula, escribe la factura y el nuevo saldo juntos.
"""

from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_, desc
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional
import logging

from app.core.config import settings
from app.core.exceptions import AlreadyVoidedError, NotFoundError, ValidationError, VoidedInvoiceError
from app.database.transaction import posting_transaction
from app.modules.customers.models import Customer
from app.modules.products.models import Product
from app.modules.invoices.models import (
    Invoice, InvoiceLineItem, InvoiceStatus, TaxLineItem, PackagingLineItem, TransportationLineItem
)
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceFilters, InvoiceLineItemCreate, InvoiceTotals,
    TaxLineItemCreate, ChargeLineItemCreate
)
from app.modules.invoices.calculator import calculate_invoice_totals, to_money, to_percent, to_quantity
from app.modules.ledger.posting import lock_customer, set_balance, guard_void_order

logger = logging.getLogger(__name__)


class InvoiceService:
    """Servicio principal para gestión de facturas"""

    def __init__(self, db: Session):
        self.db = db

    def _resolve_line_items(self, items: List[InvoiceLineItemCreate]) -> List[Dict[str, Any]]:
        """Validar productos y tomar el snapshot de nombre y precio"""
        if not items:
            raise ValidationError("La factura debe tener al menos una línea de producto")

        product_ids = {item.product_id for item in items}
        products = {
            p.id: p for p in self.db.query(Product).filter(Product.id.in_(product_ids)).all()
        }

        rows = []
        for item in items:
            product = products.get(item.product_id)
            if not product:
                raise NotFoundError("Producto", item.product_id)
            # Se guarda con la escala de la columna; los totales salen de ese valor
            quantity = to_quantity(item.product_quantity)
            if quantity <= 0:
                raise ValidationError(
                    "La cantidad debe ser mayor a 0",
                    details={"product_id": item.product_id}
                )

            price = item.product_price if item.product_price is not None else product.price
            rows.append({
                "product_id": product.id,
                "product_name": product.name,
                "product_price": to_money(price),
                "product_quantity": quantity,
                "product_amount_discount": to_money(item.product_amount_discount),
                "product_percent_discount": to_percent(item.product_percent_discount),
            })
        return rows

    @staticmethod
    def _tax_rows(items: List[TaxLineItemCreate]) -> List[Dict[str, Any]]:
        return [
            {"name": t.name, "percent": to_percent(t.percent), "amount": to_money(t.amount)}
            for t in items
        ]

    @staticmethod
    def _charge_rows(items: List[ChargeLineItemCreate]) -> List[Dict[str, Any]]:
        return [{"name": c.name, "amount": to_money(c.amount)} for c in items]

    @staticmethod
    def _stored_line_rows(invoice: Invoice) -> List[Dict[str, Any]]:
        return [
            {
                "product_id": li.product_id,
                "product_name": li.product_name,
                "product_price": li.product_price,
                "product_quantity": li.product_quantity,
                "product_amount_discount": li.product_amount_discount or 0,
                "product_percent_discount": li.product_percent_discount or 0,
            }
            for li in invoice.line_items
        ]

    @staticmethod
    def _compute_totals(line_rows: List[Dict[str, Any]], tax_rows: List[Dict[str, Any]],
                        packaging_rows: List[Dict[str, Any]], transport_rows: List[Dict[str, Any]],
                        amount_discount, percent_discount, number_of_cartons: Optional[int]) -> InvoiceTotals:
        return calculate_invoice_totals(
            line_items=[
                {
                    "price": row["product_price"],
                    "quantity": row["product_quantity"],
                    "amount_discount": row["product_amount_discount"],
                    "percent_discount": row["product_percent_discount"],
                }
                for row in line_rows
            ],
            amount_discount=amount_discount,
            percent_discount=percent_discount,
            tax_items=tax_rows,
            packaging_items=packaging_rows,
            transportation_items=transport_rows,
            number_of_cartons=number_of_cartons,
        )

    def _add_items(self, invoice: Invoice, line_rows: List[Dict[str, Any]],
                   tax_rows: Optional[List[Dict[str, Any]]] = None,
                   packaging_rows: Optional[List[Dict[str, Any]]] = None,
                   transport_rows: Optional[List[Dict[str, Any]]] = None):
        """Reemplazar las colecciones indicadas (None = no tocar)"""
        invoice.line_items = [InvoiceLineItem(**row) for row in line_rows]
        if tax_rows is not None:
            invoice.tax_items = [TaxLineItem(**row) for row in tax_rows]
        if packaging_rows is not None:
            invoice.packaging_items = [PackagingLineItem(**row) for row in packaging_rows]
        if transport_rows is not None:
            invoice.transportation_items = [TransportationLineItem(**row) for row in transport_rows]
        self.db.flush()

    def create_invoice(self, invoice_data: InvoiceCreate) -> Invoice:
        """
        Crear factura y postear su efecto en el saldo del cliente

        remaining_balance = saldo previo + final_amount - paid_by_customer,
        y el saldo del cliente queda en remaining_balance.
        """
        with posting_transaction(self.db, "crear factura"):
            customer = lock_customer(self.db, invoice_data.customer_id)
            line_rows = self._resolve_line_items(invoice_data.line_items)
            tax_rows = self._tax_rows(invoice_data.tax_items)
            packaging_rows = self._charge_rows(invoice_data.packaging_items)
            transport_rows = self._charge_rows(invoice_data.transportation_items)
            amount_discount = to_money(invoice_data.amount_discount)
            percent_discount = to_percent(invoice_data.percent_discount)

            totals = self._compute_totals(
                line_rows, tax_rows, packaging_rows, transport_rows,
                amount_discount, percent_discount, invoice_data.number_of_cartons
            )

            prev_balance = customer.balance
            paid = to_money(invoice_data.paid_by_customer)
            remaining = to_money(prev_balance + totals.final_amount - paid)

            invoice = Invoice(
                customer_id=customer.id,
                total_amount=totals.subtotal,
                amount_discount=amount_discount,
                percent_discount=percent_discount,
                final_amount=totals.final_amount,
                number_of_cartons=invoice_data.number_of_cartons,
                cust_prev_balance=prev_balance,
                paid_by_customer=paid,
                remaining_balance=remaining,
                status=InvoiceStatus.ACTIVE,
                customer_name=customer.name,
                customer_phone=customer.phone,
                customer_firm=customer.firm,
                customer_address=customer.address,
            )
            self.db.add(invoice)
            self._add_items(invoice, line_rows, tax_rows, packaging_rows, transport_rows)

            set_balance(customer, remaining, f"factura {invoice.id}")

        logger.info(
            f"Factura {invoice.id} creada para cliente {customer.id}: "
            f"final={totals.final_amount} pagado={paid} saldo={remaining}"
        )
        return self.get_invoice_by_id(invoice.id)

    def update_invoice(self, invoice_id: int, invoice_update: InvoiceUpdate) -> Invoice:
        """
        Actualizar una factura activa.

        Los campos ausentes (o nulos) conservan su valor. Las colecciones
        enviadas reemplazan por completo a las guardadas. El saldo previo
        del cliente registrado en la factura no cambia.
        """
        data = invoice_update.model_dump(exclude_unset=True)
        if not data:
            raise ValidationError("No hay campos para actualizar")

        with posting_transaction(self.db, "actualizar factura"):
            invoice = self._lock_invoice(invoice_id)
            if invoice.status == InvoiceStatus.VOID:
                raise VoidedInvoiceError(invoice_id)
            # Las líneas guardadas también se leen de nuevo
            self.db.expire(invoice, ["line_items", "tax_items", "packaging_items", "transportation_items"])

            customer = lock_customer(self.db, invoice.customer_id)

            if invoice_update.line_items is not None:
                line_rows = self._resolve_line_items(invoice_update.line_items)
            else:
                line_rows = self._stored_line_rows(invoice)

            tax_rows = packaging_rows = transport_rows = None
            if invoice_update.tax_items is not None:
                tax_rows = self._tax_rows(invoice_update.tax_items)
            if invoice_update.packaging_items is not None:
                packaging_rows = self._charge_rows(invoice_update.packaging_items)
            if invoice_update.transportation_items is not None:
                transport_rows = self._charge_rows(invoice_update.transportation_items)

            amount_discount = invoice.amount_discount
            if invoice_update.amount_discount is not None:
                amount_discount = to_money(invoice_update.amount_discount)
            percent_discount = invoice.percent_discount
            if invoice_update.percent_discount is not None:
                percent_discount = to_percent(invoice_update.percent_discount)
            number_of_cartons = invoice.number_of_cartons
            if invoice_update.number_of_cartons is not None:
                number_of_cartons = invoice_update.number_of_cartons
            paid = invoice.paid_by_customer
            if invoice_update.paid_by_customer is not None:
                paid = to_money(invoice_update.paid_by_customer)

            totals = self._compute_totals(
                line_rows,
                tax_rows if tax_rows is not None else [{"amount": t.amount, "percent": t.percent} for t in invoice.tax_items],
                packaging_rows if packaging_rows is not None else [{"amount": p.amount} for p in invoice.packaging_items],
                transport_rows if transport_rows is not None else [{"amount": t.amount} for t in invoice.transportation_items],
                amount_discount, percent_discount, number_of_cartons
            )

            remaining = to_money(invoice.cust_prev_balance + totals.final_amount - paid)

            invoice.amount_discount = amount_discount
            invoice.percent_discount = percent_discount
            invoice.number_of_cartons = number_of_cartons
            invoice.paid_by_customer = paid
            invoice.total_amount = totals.subtotal
            invoice.final_amount = totals.final_amount
            invoice.remaining_balance = remaining
            self._add_items(invoice, line_rows, tax_rows, packaging_rows, transport_rows)

            set_balance(customer, remaining, f"actualización de factura {invoice.id}")

        logger.info(f"Factura {invoice_id} actualizada: final={totals.final_amount} saldo={remaining}")
        return self.get_invoice_by_id(invoice_id)

    def void_invoice(self, invoice_id: int) -> Invoice:
        """Anular factura: el saldo del cliente vuelve a cust_prev_balance"""
        with posting_transaction(self.db, "anular factura"):
            invoice = self._lock_invoice(invoice_id)
            if invoice.status == InvoiceStatus.VOID:
                raise AlreadyVoidedError("Factura", invoice_id)

            customer = lock_customer(self.db, invoice.customer_id)
            guard_void_order(
                self.db, customer.id, invoice.created_at, f"la factura {invoice.id}",
                exclude_invoice_id=invoice.id
            )

            invoice.status = InvoiceStatus.VOID
            set_balance(customer, invoice.cust_prev_balance, f"anulación de factura {invoice.id}")

        logger.info(f"Factura {invoice_id} anulada")
        return self.get_invoice_by_id(invoice_id)

    def _lock_invoice(self, invoice_id: int) -> Invoice:
        """
        Leer la factura bloqueando su fila y descartando la copia en sesión,
        para que el estado revisado sea el confirmado en la base.
        """
        invoice = (
            self.db.query(Invoice)
            .filter(Invoice.id == invoice_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not invoice:
            raise NotFoundError("Factura", invoice_id)
        return invoice

    def get_invoice_by_id(self, invoice_id: int) -> Invoice:
        """Obtener factura con sus líneas y cliente"""
        invoice = self.db.query(Invoice).options(
            selectinload(Invoice.customer),
            selectinload(Invoice.line_items),
            selectinload(Invoice.tax_items),
            selectinload(Invoice.packaging_items),
            selectinload(Invoice.transportation_items)
        ).filter(Invoice.id == invoice_id).first()

        if not invoice:
            raise NotFoundError("Factura", invoice_id)
        return invoice

    def get_invoices(self, filters: InvoiceFilters, limit: int = 100, offset: int = 0) -> dict:
        """Obtener lista de facturas con filtros, más recientes primero"""
        limit = min(limit, settings.MAX_PAGE_SIZE)
        query = self.db.query(Invoice)

        if filters.invoice_id:
            query = query.filter(Invoice.id == filters.invoice_id)

        if filters.customer_id:
            query = query.filter(Invoice.customer_id == filters.customer_id)

        if filters.status:
            query = query.filter(Invoice.status == filters.status)

        if filters.phone or filters.customer_name:
            query = query.join(Customer, Invoice.customer_id == Customer.id)
            if filters.phone:
                term = f"%{filters.phone.strip()}%"
                query = query.filter(or_(Invoice.customer_phone.ilike(term), Customer.phone.ilike(term)))
            if filters.customer_name:
                term = f"%{filters.customer_name.strip()}%"
                query = query.filter(or_(Invoice.customer_name.ilike(term), Customer.name.ilike(term)))

        if filters.date_from:
            query = query.filter(Invoice.created_at >= datetime.combine(filters.date_from, time.min))

        if filters.date_to:
            # Día completo inclusive
            query = query.filter(
                Invoice.created_at < datetime.combine(filters.date_to + timedelta(days=1), time.min)
            )

        total = query.count()
        invoices = query.order_by(desc(Invoice.created_at), desc(Invoice.id)).offset(offset).limit(limit).all()

        return {
            "invoices": invoices,
            "total": total,
            "limit": limit,
            "offset": offset
        }
