from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.common.responses import ResponseEntity, ok
from app.modules.ledger.service import LedgerService
from app.modules.ledger.schemas import CustomerHistory, LedgerOverview

ledger_router = APIRouter(prefix="/ledger", tags=["Ledger"])


@ledger_router.get("/", response_model=ResponseEntity[LedgerOverview])
def get_ledger_overview(db: Session = Depends(get_db)):
    """Clientes con saldo pendiente y total adeudado al negocio"""
    service = LedgerService(db)
    return ok(service.get_ledger_overview(), "Ledger obtenido exitosamente")


@ledger_router.get("/history/{customer_id}", response_model=ResponseEntity[CustomerHistory])
def get_customer_history(customer_id: int, db: Session = Depends(get_db)):
    """Historial de facturas y créditos del cliente, más recientes primero"""
    service = LedgerService(db)
    return ok(service.get_customer_history(customer_id), "Historial obtenido exitosamente")
