from __future__ import annotations

import hashlib
import hmac
from typing import Callable, Dict

Signer = Callable[[str, bytes], str]


def hmac_sha256(secret: str, data: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), data, hashlib.sha256).hexdigest()


class NoAuthentication:
    def query(self, data: bytes) -> Dict[str, str]:
        return {}


class HmacAuthentication:
    """Signs serialized batches with a shared secret via an injected signer."""

    def __init__(self, *, client_key: str, secret: str, sign: Signer) -> None:
        self.client_key = client_key
        self._secret = secret
        self._sign = sign

    def mac(self, data: bytes) -> str:
        return self._sign(self._secret, data)

    def query(self, data: bytes) -> Dict[str, str]:
        return {"key": self.client_key, "mac": self.mac(data)}
