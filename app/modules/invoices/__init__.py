"""
Módulo de Facturación (Invoices)

- Creación, actualización y anulación de facturas
- Líneas de producto con snapshot de nombre y precio
- Impuestos, empaque y transporte por caja
- Cada factura registra el saldo previo del cliente y el saldo resultante

Tablas principales:
- invoices: Facturas
- invoice_line_items: Ítems de factura
- tax_line_items, packaging_line_items, transportation_line_items
"""
