"""
Class join codes.

A class code is 6 characters drawn uniformly from A-Z and 0-9. It is the only
secret a student needs to join a class, so it uses `secrets` for randomness.
Uniqueness is enforced by the unique index on classes.class_code; callers retry
with a fresh draw on collision.
"""

import re
import secrets
import string

from academic_control.core.exceptions import ValidationFailed

CLASS_CODE_ALPHABET = string.ascii_uppercase + string.digits
CLASS_CODE_LENGTH = 6
CLASS_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")


def generate_class_code() -> str:
    return "".join(secrets.choice(CLASS_CODE_ALPHABET) for _ in range(CLASS_CODE_LENGTH))


def normalize_class_code(raw: str) -> str:
    """
    Canonicalize user input: trim and uppercase.

    Raises ValidationFailed when the result is not exactly 6 characters of A-Z/0-9.

    Examples:
        " ab12cd " -> "AB12CD"
        "ab-12"    -> ValidationFailed
    """
    code = (raw or "").strip().upper()
    if not CLASS_CODE_PATTERN.match(code):
        raise ValidationFailed("Invalid class code format")
    return code
