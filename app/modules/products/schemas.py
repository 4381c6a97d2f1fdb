from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0, description="Precio unitario, no negativo")

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre es requerido')
        return v


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0)


class ProductOut(BaseModel):
    id: int
    name: str
    price: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductList(BaseModel):
    products: List[ProductOut]
    total: int
    limit: int
    offset: int
