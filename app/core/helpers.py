"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Short numeric code generation (cryptographic randomness)
- Collision-checked unique code allocation against a model

Usage:
    from core.helpers import generate_unique_code

    code = generate_unique_code(Group)       # e.g. "4821"

Note:
    Codes are fixed-width decimal strings whose first digit is never zero,
    so "1000".."9999" for the default width of 4.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import ConflictError

if TYPE_CHECKING:
    from django.db import models

# Upper bound on collision retries before giving up
MAX_CODE_ATTEMPTS = 100


def get_code_length() -> int:
    """Return the configured width of user and group codes."""
    return getattr(settings, "CHAT_IDENTITY_CODE_LENGTH", 4)


def generate_numeric_code(length: int | None = None) -> str:
    """
    Generate a random fixed-width numeric code.

    Args:
        length: Number of digits (defaults to CHAT_IDENTITY_CODE_LENGTH)

    Returns:
        Decimal string of exactly `length` digits, first digit non-zero

    Example:
        generate_numeric_code(4)  # "7310"
    """
    length = length or get_code_length()
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def generate_unique_code(
    model: type[models.Model],
    field: str = "code",
    length: int | None = None,
) -> str:
    """
    Generate a code that is not yet used by any row of `model`.

    Draws random codes and checks each one against the table until an
    unused value is found.

    Args:
        model: Model class whose `field` must stay unique
        field: Name of the code field
        length: Number of digits (defaults to CHAT_IDENTITY_CODE_LENGTH)

    Returns:
        An unused code

    Raises:
        ConflictError: If no free code was found within MAX_CODE_ATTEMPTS
    """
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_numeric_code(length)
        if not model._default_manager.filter(**{field: code}).exists():
            return code

    raise ConflictError(
        f"No free {model.__name__} code after {MAX_CODE_ATTEMPTS} attempts",
        error_code="CODE_SPACE_EXHAUSTED",
        details={"model": model.__name__},
    )
