from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.core.config import settings
from app.core.exceptions import NotFoundError, ReferentialError, ValidationError
from app.common.validators import clean_required_text
from app.modules.invoices.calculator import to_money
from .models import Product
from .schemas import ProductCreate, ProductUpdate, ProductOut

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def create_product(self, product_data: ProductCreate) -> Product:
        product = Product(name=product_data.name, price=to_money(product_data.price))
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Producto {product.id} creado con precio {product.price}")
        return product

    def get_product_by_id(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Producto", product_id)
        return product

    def get_products(self, search: Optional[str] = None, limit: int = 100, offset: int = 0) -> dict:
        limit = min(limit, settings.MAX_PAGE_SIZE)
        query = self.db.query(Product)
        if search:
            query = query.filter(Product.name.ilike(f"%{search.strip()}%"))

        total = query.count()
        products = query.order_by(Product.created_at.desc(), Product.id.desc()).offset(offset).limit(limit).all()
        return {"products": products, "total": total, "limit": limit, "offset": offset}

    def update_product(self, product_id: int, product_update: ProductUpdate) -> Product:
        """Actualizar nombre o precio. Las facturas existentes conservan su precio."""
        product = self.get_product_by_id(product_id)
        data = product_update.model_dump(exclude_unset=True)
        if not data:
            raise ValidationError("No hay campos para actualizar")

        if "name" in data:
            name = clean_required_text(data["name"])
            if name is None:
                raise ValidationError("El nombre es requerido")
            product.name = name

        if "price" in data:
            if data["price"] is None or not data["price"].is_finite():
                raise ValidationError("El precio debe ser un número no negativo")
            product.price = to_money(data["price"])

        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int) -> ProductOut:
        """Eliminar producto si ninguna factura lo referencia"""
        from app.modules.invoices.models import InvoiceLineItem

        product = self.get_product_by_id(product_id)

        usage_count = self.db.query(InvoiceLineItem).filter(InvoiceLineItem.product_id == product_id).count()
        if usage_count > 0:
            raise ReferentialError(
                f"No se puede eliminar el producto porque está en {usage_count} factura(s)",
                details={"usage_count": usage_count}
            )

        snapshot = ProductOut.model_validate(product)
        self.db.delete(product)
        self.db.commit()
        logger.info(f"Producto {product_id} eliminado")
        return snapshot
