"""
Validadores de datos de clientes
"""
import re
from typing import Optional


def normalize_phone(phone: str) -> str:
    """Quita espacios, guiones, puntos y paréntesis."""
    return re.sub(r'[\s\-\(\)\.]', '', phone or '')


def validate_phone(phone: str) -> bool:
    """
    Valida número de teléfono.
    Formatos válidos:
    - +XXXXXXXXXXX (código de país + 7 a 15 dígitos)
    - XXXXXXXXXX (7 a 15 dígitos)
    """
    cleaned = normalize_phone(phone)
    return re.match(r'^\+?[0-9]{7,15}$', cleaned) is not None


def clean_required_text(value: Optional[str]) -> Optional[str]:
    """Recorta el texto; devuelve None si queda vacío."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None
