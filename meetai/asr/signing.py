from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from typing import Mapping, Optional
from urllib.parse import quote

# Characters left untouched by JavaScript's encodeURIComponent, which the
# service uses to rebuild the canonical string on its side.
_UNRESERVED = "-_.!~*'()"


def _encode(value: str) -> str:
    return quote(value, safe=_UNRESERVED)


def canonical_query(params: Mapping[str, str]) -> str:
    """Build the string that gets signed: sorted, encoded, empties dropped."""
    keys = sorted(key for key, value in params.items() if key != "signature" and value)
    return "&".join(f"{_encode(key)}={_encode(params[key])}" for key in keys)


def sign_params(params: Mapping[str, str], secret: Optional[str]) -> str:
    """
    Return the base64 HMAC-SHA1 signature for ``params``.

    An empty string is returned when no secret is configured; the service treats
    such requests as unsigned.
    """
    if not secret:
        return ""
    digest = hmac.new(
        secret.encode("utf-8"),
        canonical_query(params).encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def encode_query(params: Mapping[str, str]) -> str:
    """Serialise request parameters in insertion order, keeping empty values."""
    return "&".join(f"{_encode(key)}={_encode(value)}" for key, value in params.items())


def new_nonce(num_bytes: int = 8) -> str:
    return secrets.token_hex(num_bytes)


def unix_timestamp() -> str:
    return str(int(time.time()))
