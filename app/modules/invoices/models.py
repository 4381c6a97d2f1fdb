from app.database.database import Base
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship
from app.common.mixins import TimestampMixin
import enum


class InvoiceStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"    # Vigente, afecta el saldo del cliente
    VOID = "VOID"        # Anulada (terminal)


class Invoice(Base, TimestampMixin):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    # Totals (calculated)
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)      # Suma de líneas con descuento
    amount_discount = Column(Numeric(15, 2), nullable=True, default=0)
    percent_discount = Column(Numeric(5, 2), nullable=True, default=0)
    final_amount = Column(Numeric(15, 2), nullable=False, default=0)
    number_of_cartons = Column(Integer, nullable=True)

    # Ledger
    cust_prev_balance = Column(Numeric(15, 2), nullable=False)  # Saldo antes de la factura; se restaura al anular
    paid_by_customer = Column(Numeric(15, 2), nullable=False, default=0)
    remaining_balance = Column(Numeric(15, 2), nullable=False)

    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.ACTIVE)

    # Snapshot del cliente al momento de facturar
    customer_name = Column(String(200), nullable=True)
    customer_phone = Column(String(20), nullable=True)
    customer_firm = Column(String(200), nullable=True)
    customer_address = Column(String(500), nullable=True)

    # Relationships
    customer = relationship("Customer")
    line_items = relationship("InvoiceLineItem", back_populates="invoice", cascade="all, delete-orphan",
                              order_by="InvoiceLineItem.id")
    tax_items = relationship("TaxLineItem", back_populates="invoice", cascade="all, delete-orphan",
                             order_by="TaxLineItem.id")
    packaging_items = relationship("PackagingLineItem", back_populates="invoice", cascade="all, delete-orphan",
                                   order_by="PackagingLineItem.id")
    transportation_items = relationship("TransportationLineItem", back_populates="invoice",
                                        cascade="all, delete-orphan", order_by="TransportationLineItem.id")


class InvoiceLineItem(Base):
    __tablename__ = "invoice_line_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    # Snapshot data (para preservar información si el producto cambia)
    product_name = Column(String(200), nullable=True)
    product_price = Column(Numeric(15, 2), nullable=False)

    product_quantity = Column(Numeric(10, 3), nullable=False)
    product_amount_discount = Column(Numeric(15, 2), nullable=True, default=0)
    product_percent_discount = Column(Numeric(5, 2), nullable=True, default=0)

    # Relationships
    invoice = relationship("Invoice", back_populates="line_items")
    product = relationship("Product")


class TaxLineItem(Base, TimestampMixin):
    __tablename__ = "tax_line_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    percent = Column(Numeric(5, 2), nullable=False, default=0)
    amount = Column(Numeric(15, 2), nullable=False, default=0)

    invoice = relationship("Invoice", back_populates="tax_items")


class PackagingLineItem(Base, TimestampMixin):
    __tablename__ = "packaging_line_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False, default=0)  # Por caja

    invoice = relationship("Invoice", back_populates="packaging_items")


class TransportationLineItem(Base, TimestampMixin):
    __tablename__ = "transportation_line_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False, default=0)  # Por caja

    invoice = relationship("Invoice", back_populates="transportation_items")
