from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from app.core.config import settings
from app.database.database import get_db
from app.common.responses import ResponseEntity, ok
from app.modules.invoices.models import InvoiceStatus
from app.modules.invoices.service import InvoiceService
from app.modules.invoices.schemas import (
    InvoiceCreate, InvoiceUpdate, InvoiceDetail, InvoiceList, InvoiceFilters
)

invoices_router = APIRouter(prefix="/invoices", tags=["Invoices"])


@invoices_router.post("/", response_model=ResponseEntity[InvoiceDetail], status_code=status.HTTP_201_CREATED)
def create_invoice(invoice_data: InvoiceCreate, db: Session = Depends(get_db)):
    """
    Crear una nueva factura

    Se calcula el total, se guarda el saldo previo del cliente y el saldo
    queda en saldo previo + total final - pagado.
    """
    service = InvoiceService(db)
    return ok(service.create_invoice(invoice_data), "Factura creada exitosamente", 201)


@invoices_router.get("/", response_model=ResponseEntity[InvoiceList])
def list_invoices(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    invoice_id: Optional[int] = Query(None, description="Buscar por número de factura"),
    customer_id: Optional[int] = Query(None, description="Filtrar por cliente"),
    status: Optional[InvoiceStatus] = Query(None, description="ACTIVE o VOID"),
    phone: Optional[str] = Query(None, description="Teléfono del cliente (parcial)"),
    customer_name: Optional[str] = Query(None, description="Nombre del cliente (parcial)"),
    date_from: Optional[date] = Query(None, description="Fecha inicial (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Fecha final (YYYY-MM-DD), inclusive"),
    db: Session = Depends(get_db)
):
    """Listar facturas, más recientes primero"""
    filters = InvoiceFilters(
        invoice_id=invoice_id,
        customer_id=customer_id,
        status=status,
        phone=phone,
        customer_name=customer_name,
        date_from=date_from,
        date_to=date_to
    )
    service = InvoiceService(db)
    return ok(service.get_invoices(filters, limit, offset), "Facturas obtenidas exitosamente")


@invoices_router.get("/{invoice_id}", response_model=ResponseEntity[InvoiceDetail])
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    """Obtener detalles completos de una factura"""
    service = InvoiceService(db)
    return ok(service.get_invoice_by_id(invoice_id), "Factura obtenida exitosamente")


@invoices_router.put("/{invoice_id}", response_model=ResponseEntity[InvoiceDetail])
def update_invoice(invoice_id: int, invoice_update: InvoiceUpdate, db: Session = Depends(get_db)):
    """
    Actualizar una factura activa

    Las listas enviadas reemplazan a las guardadas. El saldo del cliente se
    recalcula desde el saldo previo registrado en la factura.
    """
    service = InvoiceService(db)
    return ok(service.update_invoice(invoice_id, invoice_update), "Factura actualizada exitosamente")


@invoices_router.put("/void/{invoice_id}", response_model=ResponseEntity[InvoiceDetail])
def void_invoice(invoice_id: int, db: Session = Depends(get_db)):
    """Anular una factura. El saldo del cliente vuelve al valor previo a la factura."""
    service = InvoiceService(db)
    return ok(service.void_invoice(invoice_id), "Factura anulada exitosamente")
