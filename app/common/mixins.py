"""
Mixins comunes para los modelos
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime


def utcnow() -> datetime:
    """Fecha actual en UTC sin tzinfo (SQLite no conserva la zona)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """Mixin for models that need timestamp tracking"""

    # Se asigna desde Python para conservar microsegundos en ambos backends;
    # el historial ordena por esta columna
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
