"""
License code generation and parsing.

Codes are twelve symbols grouped 4-4-4 and drawn from an alphabet
without visually confusable characters, so customers can type them
from a printed invoice or an email.
"""

import re
import secrets

ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
GROUP_SIZE = 4
GROUP_COUNT = 3
SEPARATOR = "-"

_CODE_PATTERN = re.compile(
    "^" + SEPARATOR.join([f"[{ALPHABET}]{{{GROUP_SIZE}}}"] * GROUP_COUNT) + "$"
)


def generate_license_code() -> str:
    """
    Generate a random license code in format XXXX-XXXX-XXXX.

    secrets.choice draws from the OS CSPRNG and picks indexes with
    rejection sampling, so every symbol is equally likely.

    Returns:
        Generated license code
    """
    groups = [
        "".join(secrets.choice(ALPHABET) for _ in range(GROUP_SIZE)) for _ in range(GROUP_COUNT)
    ]
    return SEPARATOR.join(groups)


def normalize_license_code(raw) -> str:
    """
    Normalize user input into canonical code form.

    Args:
        raw: Code as typed by the user (may be None)

    Returns:
        Upper-cased code with all whitespace removed
    """
    return "".join(str(raw or "").split()).upper()


def is_valid_license_code(code: str) -> bool:
    """
    Check whether a string is a well formed license code.

    Args:
        code: Normalized code

    Returns:
        True if the code matches the alphabet and grouping exactly
    """
    return bool(code) and _CODE_PATTERN.match(code) is not None
