from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.core.config import settings
from app.database.database import get_db
from app.common.responses import ResponseEntity, ok
from .service import ProductService
from .schemas import ProductCreate, ProductUpdate, ProductOut, ProductList

product_router = APIRouter(prefix="/products", tags=["Products"])


@product_router.post("/", response_model=ResponseEntity[ProductOut], status_code=status.HTTP_201_CREATED)
def create_product(product_data: ProductCreate, db: Session = Depends(get_db)):
    service = ProductService(db)
    return ok(service.create_product(product_data), "Producto creado exitosamente", 201)


@product_router.get("/", response_model=ResponseEntity[ProductList])
def get_products(
    search: Optional[str] = Query(None, description="Buscar por nombre"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    service = ProductService(db)
    return ok(service.get_products(search, limit, offset), "Productos obtenidos exitosamente")


@product_router.get("/{product_id}", response_model=ResponseEntity[ProductOut])
def get_product(product_id: int, db: Session = Depends(get_db)):
    service = ProductService(db)
    return ok(service.get_product_by_id(product_id), "Producto obtenido exitosamente")


@product_router.put("/{product_id}", response_model=ResponseEntity[ProductOut])
def update_product(product_id: int, product_update: ProductUpdate, db: Session = Depends(get_db)):
    service = ProductService(db)
    return ok(service.update_product(product_id, product_update), "Producto actualizado exitosamente")


@product_router.delete("/{product_id}", response_model=ResponseEntity[ProductOut])
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Eliminar un producto. Falla si alguna factura lo usa."""
    service = ProductService(db)
    return ok(service.delete_product(product_id), "Producto eliminado exitosamente")
