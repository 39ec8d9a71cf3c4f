"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2).
- El dominio no conoce HTTP, CLI ni event loops: solo conceptos del keyspace.
"""

from etcd_client.core.domain.error_codes import EtcdErrorCode
from etcd_client.core.domain.models import EtcdNode, EtcdResult, RawResponse

__all__ = ["EtcdErrorCode", "EtcdNode", "EtcdResult", "RawResponse"]
