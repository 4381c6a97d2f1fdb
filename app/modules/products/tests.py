"""
Tests para el módulo de Productos
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ReferentialError, ValidationError
from app.modules.invoices.schemas import InvoiceCreate
from app.modules.invoices.service import InvoiceService
from app.modules.products.schemas import ProductCreate, ProductUpdate
from app.modules.products.service import ProductService


class TestProductService:

    def test_create_product(self, db_session: Session):
        product = ProductService(db_session).create_product(ProductCreate(name=" Tuerca ", price="1.25"))
        assert product.id is not None
        assert product.name == "Tuerca"
        assert product.price == Decimal("1.25")

    def test_negative_price_rejected(self):
        with pytest.raises(Exception):
            ProductCreate(name="Tuerca", price=-1)

    def test_update_product(self, db_session: Session, sample_product):
        service = ProductService(db_session)
        updated = service.update_product(sample_product.id, ProductUpdate(price="120"))
        assert updated.price == Decimal("120.00")
        assert updated.name == "Caja de tornillos"

        with pytest.raises(ValidationError):
            service.update_product(sample_product.id, ProductUpdate())

    def test_price_rounded_to_cents(self, db_session: Session, sample_product):
        service = ProductService(db_session)
        product = service.create_product(ProductCreate(name="Clavo", price="0.125"))
        assert product.price == Decimal("0.13")

        updated = service.update_product(sample_product.id, ProductUpdate(price="99.994"))
        assert updated.price == Decimal("99.99")

    def test_price_change_does_not_touch_invoices(self, db_session: Session, sample_customer, sample_product):
        invoice = InvoiceService(db_session).create_invoice(InvoiceCreate(
            customer_id=sample_customer.id,
            line_items=[{"product_id": sample_product.id, "product_quantity": 1}],
        ))
        ProductService(db_session).update_product(sample_product.id, ProductUpdate(price="500"))

        stored = InvoiceService(db_session).get_invoice_by_id(invoice.id)
        assert stored.final_amount == Decimal("100.00")
        assert stored.line_items[0].product_price == Decimal("100.00")

    def test_delete_unused_product(self, db_session: Session, sample_product):
        service = ProductService(db_session)
        service.delete_product(sample_product.id)
        with pytest.raises(NotFoundError):
            service.get_product_by_id(sample_product.id)

    def test_delete_referenced_product(self, db_session: Session, sample_customer, sample_product):
        InvoiceService(db_session).create_invoice(InvoiceCreate(
            customer_id=sample_customer.id,
            line_items=[{"product_id": sample_product.id, "product_quantity": 1}],
        ))

        with pytest.raises(ReferentialError) as exc_info:
            ProductService(db_session).delete_product(sample_product.id)
        assert exc_info.value.details["usage_count"] == 1


class TestProductAPI:

    def test_product_endpoints(self, client):
        response = client.post("/products/", json={"name": "Destornillador", "price": "12.90"})
        assert response.status_code == 201
        product_id = response.json()["data"]["id"]

        response = client.get("/products/", params={"search": "destor"})
        assert response.json()["data"]["total"] == 1

        response = client.put(f"/products/{product_id}", json={"name": "Destornillador plano"})
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Destornillador plano"

        response = client.delete(f"/products/{product_id}")
        assert response.status_code == 200
        assert client.get(f"/products/{product_id}").status_code == 404
