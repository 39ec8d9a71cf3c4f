"""Adaptadores de infraestructura (HTTP, URIs, exportación).

Por qué un paquete:
- Aísla httpx y los detalles de wire del Core.
- Cada módulo implementa o alimenta un contrato de `core.interfaces`.
"""

from etcd_client.adapters.http_client import HttpxTransport, build_async_client, long_poll_timeout
from etcd_client.adapters.json_exporter import export_result_json, format_result
from etcd_client.adapters.uri_builder import KeyUriBuilder

__all__ = [
    "HttpxTransport",
    "KeyUriBuilder",
    "build_async_client",
    "export_result_json",
    "format_result",
    "long_poll_timeout",
]
