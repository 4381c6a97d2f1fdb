"""
Cálculo de totales de factura

Funciones puras, sin acceso a base de datos. Orden de cálculo:

    1. línea = precio x cantidad - descuento de producto (mínimo 0)
    2. subtotal = suma de líneas
    3. descuento de factura sobre el subtotal -> after_discount
    4. impuestos sobre after_discount -> after_tax
    5. empaque y transporte por caja x max(cajas, 1)
    6. final = after_tax + empaque + transporte

Regla de descuentos e impuestos: si el monto es > 0 se usa el monto;
si no, si el porcentaje es > 0 se aplica el porcentaje; si no, 0.
El monto gana cuando vienen ambos.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from app.core.config import settings
from app.modules.invoices.schemas import InvoiceTotals

ZERO = Decimal('0')
HUNDRED = Decimal('100')

# Escalas de las columnas: cantidad Numeric(10, 3), porcentajes Numeric(5, 2)
QUANTITY_PLACES = Decimal('0.001')
PERCENT_PLACES = Decimal('0.01')


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value: Any) -> Decimal:
    """Redondear a centavos (ROUND_HALF_UP)"""
    places = Decimal(1).scaleb(-settings.MONEY_DECIMAL_PLACES)
    return to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def to_quantity(value: Any) -> Decimal:
    return to_decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def to_percent(value: Any) -> Decimal:
    return to_decimal(value).quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP)


def resolve_reduction(base: Any, amount: Any = None, percent: Any = None) -> Decimal:
    """
    Monto de descuento o impuesto aplicable sobre `base`.

    Monto > 0 gana; si no, porcentaje > 0 sobre la base; si no, 0.
    """
    amount = to_decimal(amount)
    percent = to_decimal(percent)

    if amount > ZERO:
        return to_money(amount)
    if percent > ZERO:
        return to_money(to_decimal(base) * percent / HUNDRED)
    return to_money(ZERO)


def calculate_line_total(price: Any, quantity: Any, amount_discount: Any = None,
                         percent_discount: Any = None) -> Decimal:
    """Total de una línea de producto después de su descuento, nunca negativo"""
    line_subtotal = to_money(to_decimal(price) * to_decimal(quantity))
    discount = resolve_reduction(line_subtotal, amount_discount, percent_discount)
    return max(line_subtotal - discount, to_money(ZERO))


def carton_multiplier(number_of_cartons: Optional[int]) -> int:
    return max(int(number_of_cartons or 0), 1)


def sum_charges(charges: Iterable[Dict[str, Any]], number_of_cartons: Optional[int] = None) -> Decimal:
    """Suma de cargos por caja (empaque o transporte) multiplicada por las cajas"""
    total = sum((to_decimal(c.get("amount")) for c in charges), ZERO)
    return to_money(total * carton_multiplier(number_of_cartons))


def calculate_invoice_totals(
    line_items: List[Dict[str, Any]],
    amount_discount: Any = None,
    percent_discount: Any = None,
    tax_items: Optional[List[Dict[str, Any]]] = None,
    packaging_items: Optional[List[Dict[str, Any]]] = None,
    transportation_items: Optional[List[Dict[str, Any]]] = None,
    number_of_cartons: Optional[int] = None,
) -> InvoiceTotals:
    """
    Calcular todos los totales de una factura

    Args:
        line_items: [{"price", "quantity", "amount_discount", "percent_discount"}]
        amount_discount / percent_discount: descuento de la factura
        tax_items: [{"name", "amount", "percent"}]
        packaging_items / transportation_items: [{"name", "amount"}] por caja
        number_of_cartons: multiplicador de empaque y transporte

    Returns:
        InvoiceTotals con el desglose completo
    """
    line_totals = [
        calculate_line_total(
            item.get("price"),
            item.get("quantity"),
            item.get("amount_discount"),
            item.get("percent_discount"),
        )
        for item in line_items
    ]
    subtotal = to_money(sum(line_totals, ZERO))

    discount = resolve_reduction(subtotal, amount_discount, percent_discount)
    after_discount = max(subtotal - discount, to_money(ZERO))

    tax_total = to_money(sum(
        (resolve_reduction(after_discount, t.get("amount"), t.get("percent")) for t in (tax_items or [])),
        ZERO
    ))
    after_tax = after_discount + tax_total

    packaging_total = sum_charges(packaging_items or [], number_of_cartons)
    transport_total = sum_charges(transportation_items or [], number_of_cartons)

    return InvoiceTotals(
        line_totals=line_totals,
        subtotal=subtotal,
        discount=discount,
        after_discount=after_discount,
        tax_total=tax_total,
        after_tax=after_tax,
        packaging_total=packaging_total,
        transport_total=transport_total,
        final_amount=to_money(after_tax + packaging_total + transport_total),
    )
