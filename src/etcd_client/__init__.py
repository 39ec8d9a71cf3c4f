"""Async-first client for the etcd v2 HTTP keyspace API."""

from etcd_client.adapters.json_exporter import format_result
from etcd_client.core.config import ClientSettings
from etcd_client.core.domain import EtcdErrorCode, EtcdNode, EtcdResult
from etcd_client.core.errors import (
    EtcdClientClosedError,
    EtcdClientError,
    EtcdDomainError,
    EtcdEmptyResponseError,
    EtcdInterruptedError,
    EtcdParseError,
    EtcdTransportError,
)
from etcd_client.core.services import AsyncEtcdClient, EtcdClient

__version__ = "0.1.0"

__all__ = [
    "AsyncEtcdClient",
    "ClientSettings",
    "EtcdClient",
    "EtcdClientClosedError",
    "EtcdClientError",
    "EtcdDomainError",
    "EtcdEmptyResponseError",
    "EtcdErrorCode",
    "EtcdInterruptedError",
    "EtcdNode",
    "EtcdParseError",
    "EtcdResult",
    "EtcdTransportError",
    "format_result",
]
