"""Construcción de URIs del keyspace.

Reglas:
- La clave se parte por '/' y cada segmento se escapa por separado, así un
  carácter reservado dentro de un segmento nunca se lee como separador.
- Solo se descarta la '/' inicial; los segmentos vacíos intermedios o
  finales se conservan (p.ej. 'dir/' apunta al listado del directorio).
"""

from __future__ import annotations

from urllib.parse import quote, urljoin, urlsplit

KEYS_PREFIX = "v2/keys"
VERSION_PATH = "version"


def normalize_base_url(base_url: str) -> str:
    """Valida el endpoint base y garantiza la '/' final."""

    url = base_url.strip()
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"invalid etcd endpoint: {base_url!r}")
    if not url.endswith("/"):
        url += "/"
    return url


def escape_segment(segment: str) -> str:
    # '.' y '..' se resolverían como rutas relativas al hacer join.
    if segment and set(segment) == {"."}:
        return "%2E" * len(segment)
    return quote(segment, safe="")


class KeyUriBuilder:
    """Resuelve rutas relativas contra el endpoint base del servicio."""

    def __init__(self, base_url: str) -> None:
        self._base_url = normalize_base_url(base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    def resolve(self, path: str) -> str:
        return urljoin(self._base_url, path)

    def build_key_uri(self, prefix: str, key: str, suffix: str = "") -> str:
        """URI absoluta para `key` bajo `prefix`, con `suffix` literal al final.

        `suffix` puede contener query params (`?wait=true`) o un marcador de
        directorio (`/`); no se escapa.
        """

        if key.startswith("/"):
            key = key[1:]
        path = prefix + "".join("/" + escape_segment(token) for token in key.split("/"))
        return self.resolve(path + suffix)
