"""Capa CLI (typer + rich).

Por qué separada:
- La CLI solo traduce argumentos a operaciones del cliente y resultados a
  tablas/JSON; no contiene lógica del protocolo.
"""
