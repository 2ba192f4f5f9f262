"""Canonical identifiers: 24 lowercase hexadecimal characters."""

import re
import secrets
from typing import Any

from .exceptions import ValidationError

OBJECT_ID_LENGTH = 24

_OBJECT_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def new_object_id() -> str:
    """Generate a fresh canonical identifier."""
    return secrets.token_hex(OBJECT_ID_LENGTH // 2)


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_OBJECT_ID_PATTERN.match(value))


def parse_object_id(value: Any, field: str = "id") -> str:
    """
    Normalize an identifier into its canonical form.

    Surrounding whitespace is stripped and hex digits are lowercased. Anything
    that is not exactly 24 hex characters afterwards is rejected.

    Raises:
        ValidationError: If the value is not a valid identifier
    """
    if isinstance(value, str):
        candidate = value.strip().lower()
        if _OBJECT_ID_PATTERN.match(candidate):
            return candidate

    raise ValidationError(
        detail=f"'{field}' must be a {OBJECT_ID_LENGTH}-character hexadecimal identifier",
        errors={field: ["invalid identifier"]},
    )
