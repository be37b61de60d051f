"""URL helpers: partial-URL overlay, origin checks and data-URI decoding."""

from __future__ import annotations

import base64
import binascii
from urllib.parse import unquote_to_bytes, urlsplit, urlunsplit

from patchright_session.errors import InvalidArgumentError


def _components(url: str) -> dict[str, str | int | None]:
    parts = urlsplit(url)
    values: dict[str, str | int | None] = {
        "scheme": parts.scheme or None,
        "username": parts.username,
        "password": parts.password,
        "hostname": parts.hostname,
        "port": parts.port,
        "path": parts.path or None,
        "query": parts.query or None,
        "fragment": parts.fragment or None,
    }
    return values


def merge_url(current: str, partial: str) -> str:
    """Overlay the components present in *partial* onto *current*.

    Components missing from *partial* are kept from *current*, so
    ``merge_url("https://h.example/a/b?y=2", "/path?x=1")`` gives
    ``https://h.example/path?x=1``.
    """
    merged = _components(current)
    for key, value in _components(partial).items():
        if value is not None:
            merged[key] = value

    netloc = ""
    if merged["hostname"]:
        netloc = str(merged["hostname"])
        if ":" in netloc:
            netloc = f"[{netloc}]"
        if merged["port"] is not None:
            netloc += f":{merged['port']}"
        if merged["username"]:
            userinfo = str(merged["username"])
            if merged["password"]:
                userinfo += f":{merged['password']}"
            netloc = f"{userinfo}@{netloc}"

    path = str(merged["path"] or "")
    if netloc and path and not path.startswith("/"):
        path = "/" + path

    return urlunsplit(
        (
            str(merged["scheme"] or ""),
            netloc,
            path,
            str(merged["query"] or ""),
            str(merged["fragment"] or ""),
        )
    )


def same_origin(first: str, second: str) -> bool:
    """Return ``True`` if both URLs share scheme and host."""
    a, b = urlsplit(first), urlsplit(second)
    return a.scheme.lower() == b.scheme.lower() and (a.hostname or "") == (b.hostname or "")


def origin_root(url: str) -> str:
    """Return the root of *url*'s origin, e.g. ``https://h.example/``."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))


def decode_data_uri(uri: str) -> bytes:
    """Decode a ``data:`` URI (base64 or percent-encoded) into raw bytes."""
    if not isinstance(uri, str) or not uri.startswith("data:"):
        raise InvalidArgumentError(f"Not a data URI: {str(uri)[:60]!r}")
    header, sep, payload = uri[5:].partition(",")
    if not header and not sep:
        # FileReader renders an empty blob as a bare "data:"
        return b""
    if not sep:
        raise InvalidArgumentError("Data URI has no payload separator")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise InvalidArgumentError(f"Invalid base64 payload in data URI: {exc}") from exc
    return unquote_to_bytes(payload)
