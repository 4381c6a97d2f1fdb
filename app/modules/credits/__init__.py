"""
Módulo de Créditos

Pagos del cliente registrados por separado de las facturas. Cada crédito
guarda el saldo previo y el saldo final; anularlo restaura el saldo previo.
"""
