"""
Router para el módulo de Clientes
"""

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.core.config import settings
from app.database.database import get_db
from app.common.responses import ResponseEntity, ok
from app.modules.customers.service import CustomerService
from app.modules.customers.schemas import CustomerCreate, CustomerUpdate, CustomerOut, CustomerList

router = APIRouter(
    prefix="/customers",
    tags=["Customers"],
    responses={404: {"description": "Not found"}}
)


@router.post("/", response_model=ResponseEntity[CustomerOut], status_code=status.HTTP_201_CREATED)
def create_customer(customer_data: CustomerCreate, db: Session = Depends(get_db)):
    """
    Registrar un nuevo cliente

    - **name**, **phone**, **firm**: requeridos
    - **phone** y **firm** deben ser únicos
    - **balance**: saldo de apertura (opcional, 0 por defecto)
    """
    service = CustomerService(db)
    return ok(service.create_customer(customer_data), "Cliente creado exitosamente", 201)


@router.get("/", response_model=ResponseEntity[CustomerList])
def list_customers(
    search: Optional[str] = Query(None, description="Buscar por nombre o teléfono"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    service = CustomerService(db)
    return ok(service.get_customers(search, limit, offset), "Clientes obtenidos exitosamente")


@router.get("/{customer_id}", response_model=ResponseEntity[CustomerOut])
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    service = CustomerService(db)
    return ok(service.get_customer_by_id(customer_id), "Cliente obtenido exitosamente")


@router.put("/{customer_id}", response_model=ResponseEntity[CustomerOut])
def update_customer(customer_id: int, customer_update: CustomerUpdate, db: Session = Depends(get_db)):
    """Actualizar nombre, teléfono, firma o dirección. El saldo no se modifica."""
    service = CustomerService(db)
    return ok(service.update_customer(customer_id, customer_update), "Cliente actualizado exitosamente")


@router.delete("/{customer_id}", response_model=ResponseEntity[CustomerOut])
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    """Eliminar un cliente. Falla si tiene facturas o créditos."""
    service = CustomerService(db)
    return ok(service.delete_customer(customer_id), "Cliente eliminado exitosamente")
