from __future__ import annotations

import re
import uuid

from .errors import InvalidIdentifierError

NAME_RE = re.compile(r"[A-Za-z0-9]+")


def generate_uuid() -> str:
    # uuid4 draws from os.urandom; version and variant bits are set by the stdlib.
    return str(uuid.uuid4())


def validate_name(name: str) -> None:
    if not isinstance(name, str) or not NAME_RE.fullmatch(name):
        raise InvalidIdentifierError(
            f"Invalid name {name!r}; only letters and digits are allowed."
        )
