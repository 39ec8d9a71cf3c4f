"""Script de ejecución.

Por qué existe:
- Permite ejecutar la CLI con `python -m etcd_client` durante desarrollo.
- Mantiene un entrypoint simple además del script `etcdv2`.
"""

from __future__ import annotations

from etcd_client.cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
