"""
Ledger de clientes: primitivas de posting sobre el saldo y consultas de
historial y resumen de saldos.
"""
