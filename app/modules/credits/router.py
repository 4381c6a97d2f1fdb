from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.core.config import settings
from app.database.database import get_db
from app.common.responses import ResponseEntity, ok
from app.modules.credits.models import CreditStatus
from app.modules.credits.service import CreditService
from app.modules.credits.schemas import CreditCreate, CreditOut, CreditList, CreditFilters

credits_router = APIRouter(prefix="/credits", tags=["Credits"])


@credits_router.post("/customer/{customer_id}", response_model=ResponseEntity[CreditOut],
                     status_code=status.HTTP_201_CREATED)
def create_credit(customer_id: int, credit_data: CreditCreate, db: Session = Depends(get_db)):
    """
    Registrar un pago del cliente

    El saldo del cliente queda en saldo previo - monto pagado.
    """
    service = CreditService(db)
    return ok(service.create_credit(customer_id, credit_data), "Crédito creado exitosamente", 201)


@credits_router.get("/", response_model=ResponseEntity[CreditList])
def list_credits(
    customer_id: Optional[int] = Query(None, description="Filtrar por cliente"),
    status: Optional[CreditStatus] = Query(None, description="ACTIVE o VOID"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    service = CreditService(db)
    filters = CreditFilters(customer_id=customer_id, status=status)
    return ok(service.get_credits(filters, limit, offset), "Créditos obtenidos exitosamente")


@credits_router.get("/{credit_id}", response_model=ResponseEntity[CreditOut])
def get_credit(credit_id: int, db: Session = Depends(get_db)):
    service = CreditService(db)
    return ok(service.get_credit_by_id(credit_id), "Crédito obtenido exitosamente")


@credits_router.put("/void/{credit_id}", response_model=ResponseEntity[CreditOut])
def void_credit(credit_id: int, db: Session = Depends(get_db)):
    """Anular un crédito. El saldo vuelve al valor previo al crédito."""
    service = CreditService(db)
    return ok(service.void_credit(credit_id), "Crédito anulado exitosamente")
