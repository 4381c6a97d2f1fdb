from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from datetime import datetime, date

from app.modules.invoices.models import InvoiceStatus
from app.modules.customers.schemas import CustomerOut


# Line Item Schemas
class InvoiceLineItemCreate(BaseModel):
    product_id: int
    product_quantity: Decimal = Field(..., gt=0, description="Cantidad del producto")
    product_price: Optional[Decimal] = Field(None, ge=0, description="Precio unitario (si no, el precio actual del producto)")
    product_amount_discount: Decimal = Field(Decimal('0'), ge=0)
    product_percent_discount: Decimal = Field(Decimal('0'), ge=0, le=100)


class InvoiceLineItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    product_price: Decimal
    product_quantity: Decimal
    product_amount_discount: Optional[Decimal] = None
    product_percent_discount: Optional[Decimal] = None

    class Config:
        from_attributes = True


class TaxLineItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    percent: Decimal = Field(Decimal('0'), ge=0, le=100)
    amount: Decimal = Field(Decimal('0'), ge=0)


class TaxLineItemOut(BaseModel):
    id: int
    name: str
    percent: Decimal
    amount: Decimal

    class Config:
        from_attributes = True


class ChargeLineItemCreate(BaseModel):
    """Cargo por caja: empaque o transporte"""
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(Decimal('0'), ge=0)


class ChargeLineItemOut(BaseModel):
    id: int
    name: str
    amount: Decimal

    class Config:
        from_attributes = True


# Invoice Schemas
class InvoiceCreate(BaseModel):
    customer_id: int
    line_items: List[InvoiceLineItemCreate] = Field(..., min_length=1)
    tax_items: List[TaxLineItemCreate] = Field(default_factory=list)
    packaging_items: List[ChargeLineItemCreate] = Field(default_factory=list)
    transportation_items: List[ChargeLineItemCreate] = Field(default_factory=list)
    amount_discount: Decimal = Field(Decimal('0'), ge=0)
    percent_discount: Decimal = Field(Decimal('0'), ge=0, le=100)
    paid_by_customer: Decimal = Field(Decimal('0'), ge=0)
    number_of_cartons: Optional[int] = Field(None, ge=0)

    @field_validator('paid_by_customer', 'amount_discount')
    @classmethod
    def check_finite(cls, v):
        if not v.is_finite():
            raise ValueError('El monto debe ser un número finito')
        return v


class InvoiceUpdate(BaseModel):
    """Campos ausentes conservan su valor; listas presentes reemplazan las guardadas"""
    line_items: Optional[List[InvoiceLineItemCreate]] = Field(None, min_length=1)
    tax_items: Optional[List[TaxLineItemCreate]] = None
    packaging_items: Optional[List[ChargeLineItemCreate]] = None
    transportation_items: Optional[List[ChargeLineItemCreate]] = None
    amount_discount: Optional[Decimal] = Field(None, ge=0)
    percent_discount: Optional[Decimal] = Field(None, ge=0, le=100)
    paid_by_customer: Optional[Decimal] = Field(None, ge=0)
    number_of_cartons: Optional[int] = Field(None, ge=0)


class InvoiceOut(BaseModel):
    id: int
    customer_id: int
    total_amount: Decimal
    amount_discount: Optional[Decimal] = None
    percent_discount: Optional[Decimal] = None
    final_amount: Decimal
    number_of_cartons: Optional[int] = None
    cust_prev_balance: Decimal
    paid_by_customer: Decimal
    remaining_balance: Decimal
    status: InvoiceStatus
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_firm: Optional[str] = None
    customer_address: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InvoiceDetail(InvoiceOut):
    """Factura con sus líneas y el cliente actual"""
    customer: Optional[CustomerOut] = None
    line_items: List[InvoiceLineItemOut] = []
    tax_items: List[TaxLineItemOut] = []
    packaging_items: List[ChargeLineItemOut] = []
    transportation_items: List[ChargeLineItemOut] = []

    class Config:
        from_attributes = True


class InvoiceList(BaseModel):
    invoices: List[InvoiceOut]
    total: int
    limit: int
    offset: int


# Search y Filter Schemas
class InvoiceFilters(BaseModel):
    """Filtros para búsqueda de facturas"""
    invoice_id: Optional[int] = None
    customer_id: Optional[int] = None
    status: Optional[InvoiceStatus] = None
    phone: Optional[str] = Field(None, description="Subcadena del teléfono del cliente")
    customer_name: Optional[str] = Field(None, description="Subcadena del nombre del cliente")
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class InvoiceTotals(BaseModel):
    """Totales calculados de la factura"""
    line_totals: List[Decimal]
    subtotal: Decimal
    discount: Decimal
    after_discount: Decimal
    tax_total: Decimal
    after_tax: Decimal
    packaging_total: Decimal
    transport_total: Decimal
    final_amount: Decimal
