"""
Tests para el módulo de Clientes
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ReferentialError, ValidationError
from app.modules.customers.schemas import CustomerCreate, CustomerUpdate
from app.modules.customers.service import CustomerService
from app.modules.credits.schemas import CreditCreate
from app.modules.credits.service import CreditService


@pytest.fixture
def sample_customer_data():
    return {
        "name": "  Almacén El Sol ",
        "phone": "+57 300-555-1234",
        "firm": "El Sol SAS",
        "address": "Carrera 7 # 12-30",
    }


class TestCustomerService:

    def test_create_customer_success(self, db_session: Session, sample_customer_data):
        service = CustomerService(db_session)
        customer = service.create_customer(CustomerCreate(**sample_customer_data))

        assert customer.id is not None
        assert customer.name == "Almacén El Sol"
        assert customer.phone == "+573005551234"
        assert customer.balance == Decimal("0")

    def test_create_with_opening_balance(self, db_session: Session, sample_customer_data):
        service = CustomerService(db_session)
        customer = service.create_customer(CustomerCreate(**sample_customer_data, balance="250.75"))
        assert customer.balance == Decimal("250.75")

    def test_opening_balance_rounded_half_up(self, db_session: Session, sample_customer_data):
        customer = CustomerService(db_session).create_customer(CustomerCreate(**sample_customer_data, balance="250.755"))
        assert customer.balance == Decimal("250.76")

    def test_invalid_phone_rejected(self, sample_customer_data):
        with pytest.raises(Exception):
            CustomerCreate(**{**sample_customer_data, "phone": "abc"})

    def test_blank_name_rejected(self, sample_customer_data):
        with pytest.raises(Exception):
            CustomerCreate(**{**sample_customer_data, "name": "   "})

    def test_duplicate_phone(self, db_session: Session, sample_customer_data):
        service = CustomerService(db_session)
        service.create_customer(CustomerCreate(**sample_customer_data))

        with pytest.raises(ConflictError) as exc_info:
            service.create_customer(CustomerCreate(**{**sample_customer_data, "firm": "Otra firma"}))
        assert exc_info.value.status_code == 409
        assert "teléfono" in exc_info.value.message

    def test_duplicate_firm(self, db_session: Session, sample_customer_data):
        service = CustomerService(db_session)
        service.create_customer(CustomerCreate(**sample_customer_data))

        with pytest.raises(ConflictError) as exc_info:
            service.create_customer(CustomerCreate(**{**sample_customer_data, "phone": "3007778888"}))
        assert "firma" in exc_info.value.message

    def test_search(self, db_session: Session, sample_customer, other_customer):
        service = CustomerService(db_session)
        result = service.get_customers(search="norte")
        assert result["total"] == 1
        assert result["customers"][0].id == other_customer.id

        assert service.get_customers(search="300123")["customers"][0].id == sample_customer.id
        assert service.get_customers()["total"] == 2

    def test_update_customer(self, db_session: Session, sample_customer):
        service = CustomerService(db_session)
        updated = service.update_customer(sample_customer.id, CustomerUpdate(address="Nueva dirección", phone="300 111 2222"))

        assert updated.address == "Nueva dirección"
        assert updated.phone == "3001112222"
        assert updated.balance == Decimal("0")

    def test_update_conflict_excludes_self(self, db_session: Session, sample_customer, other_customer):
        service = CustomerService(db_session)
        # El mismo teléfono del propio cliente no es conflicto
        service.update_customer(sample_customer.id, CustomerUpdate(phone=sample_customer.phone))

        with pytest.raises(ConflictError):
            service.update_customer(sample_customer.id, CustomerUpdate(firm=other_customer.firm))

    def test_update_validations(self, db_session: Session, sample_customer):
        service = CustomerService(db_session)
        with pytest.raises(ValidationError):
            service.update_customer(sample_customer.id, CustomerUpdate())
        with pytest.raises(ValidationError):
            service.update_customer(sample_customer.id, CustomerUpdate(name="  "))
        with pytest.raises(ValidationError):
            service.update_customer(sample_customer.id, CustomerUpdate(phone="12"))

    def test_delete_customer(self, db_session: Session, sample_customer):
        service = CustomerService(db_session)
        deleted = service.delete_customer(sample_customer.id)
        assert deleted.id == sample_customer.id

        with pytest.raises(NotFoundError):
            service.get_customer_by_id(deleted.id)

    def test_delete_referenced_customer(self, db_session: Session, sample_customer):
        CreditService(db_session).create_credit(sample_customer.id, CreditCreate(amount_paid_by_customer=10))

        with pytest.raises(ReferentialError) as exc_info:
            CustomerService(db_session).delete_customer(sample_customer.id)
        assert exc_info.value.details == {"invoices": 0, "credits": 1}


class TestCustomerAPI:

    def test_create_customer_endpoint(self, client, sample_customer_data):
        response = client.post("/customers/", json=sample_customer_data)
        assert response.status_code == 201
        body = response.json()
        assert body["status_code"] == 201
        assert body["data"]["firm"] == "El Sol SAS"

        response = client.post("/customers/", json=sample_customer_data)
        assert response.status_code == 409
        assert response.json()["status_code"] == 409

    def test_list_and_get_endpoints(self, client, sample_customer):
        response = client.get("/customers/")
        assert response.status_code == 200
        assert response.json()["data"]["total"] == 1

        response = client.get(f"/customers/{sample_customer.id}")
        assert response.status_code == 200
        assert response.json()["data"]["name"] == sample_customer.name

    def test_update_and_delete_endpoints(self, client, sample_customer):
        response = client.put(f"/customers/{sample_customer.id}", json={"name": "Ferretería Sur"})
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Ferretería Sur"

        response = client.delete(f"/customers/{sample_customer.id}")
        assert response.status_code == 200

        response = client.get(f"/customers/{sample_customer.id}")
        assert response.status_code == 404
