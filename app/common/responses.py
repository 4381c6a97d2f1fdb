"""
Sobre de respuesta común: {data, message, status_code}
"""
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ResponseEntity(BaseModel, Generic[T]):
    data: Optional[T] = None
    message: str
    status_code: int


def ok(data: Any, message: str, status_code: int = 200) -> dict:
    """Arma el sobre; FastAPI lo valida contra el response_model del endpoint."""
    return {"data": data, "message": message, "status_code": status_code}
