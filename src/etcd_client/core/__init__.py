"""Core del cliente: dominio, errores, contratos, configuración y servicios.

Por qué separado de `adapters`:
- El Core define *qué* hace cada operación; los adaptadores, *cómo* se
  habla HTTP con el servicio.
"""
