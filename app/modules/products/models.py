from app.database.database import Base
from sqlalchemy import Column, Integer, String, Numeric
from app.common.mixins import TimestampMixin


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    # Precio vigente; las facturas guardan su propia copia en cada línea
    price = Column(Numeric(15, 2), nullable=False, default=0)
