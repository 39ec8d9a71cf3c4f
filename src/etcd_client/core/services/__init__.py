"""Servicios del Core: pipeline de ejecución y fachadas de operaciones."""

from etcd_client.core.services.async_client import AsyncEtcdClient
from etcd_client.core.services.sync_client import EtcdClient

__all__ = ["AsyncEtcdClient", "EtcdClient"]
