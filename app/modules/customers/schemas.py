from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from datetime import datetime

from app.common.validators import validate_phone, normalize_phone


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., min_length=1, max_length=20)
    firm: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)

    @field_validator('name', 'firm')
    @classmethod
    def strip_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El campo no puede estar vacío')
        return v

    @field_validator('phone')
    @classmethod
    def check_phone(cls, v):
        if not validate_phone(v):
            raise ValueError('Formato de teléfono inválido')
        return normalize_phone(v)


class CustomerCreate(CustomerBase):
    # Saldo inicial al registrar el cliente
    balance: Decimal = Field(Decimal('0'), description="Saldo de apertura")

    @field_validator('balance')
    @classmethod
    def check_balance(cls, v):
        if not v.is_finite():
            raise ValueError('El saldo debe ser un número finito')
        return v


class CustomerUpdate(BaseModel):
    """El saldo no se edita aquí: solo cambia por facturas y créditos"""
    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    firm: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)


class CustomerOut(BaseModel):
    id: int
    name: str
    phone: str
    firm: str
    address: Optional[str] = None
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerList(BaseModel):
    customers: List[CustomerOut]
    total: int
    limit: int
    offset: int
