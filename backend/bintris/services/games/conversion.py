"""Numeric base conversion helpers used by challenges.

Digits are always rendered uppercase from the 0-9A-F alphabet, so the
supported bases are 2 through 16.
"""

DIGITS = '0123456789ABCDEF'


def _check_base(base: int) -> None:
    if not 2 <= base <= len(DIGITS):
        raise ValueError(f"base must be between 2 and {len(DIGITS)}, got {base}")


def convert_to_string(value: int, base: int, length: int = 0) -> str:
    """Render a non-negative integer in the given base.

    `length` is a minimum width: shorter results are left padded with
    zeros, longer results are never truncated.
    """
    _check_base(base)
    if value < 0:
        raise ValueError(f"value must be non-negative, got {value}")
    result = ''
    remaining = length
    while True:
        result = DIGITS[value % base] + result
        value //= base
        remaining -= 1
        if remaining <= 0 and value == 0:
            return result


def convert_to_number(text: str, base: int) -> int:
    """Parse a string of digits in the given base (case-insensitive)."""
    _check_base(base)
    text = text.strip().upper()
    if not text:
        raise ValueError("cannot convert an empty string")
    result = 0
    for ch in text:
        digit = DIGITS.find(ch)
        if digit < 0 or digit >= base:
            raise ValueError(f"invalid digit {ch!r} for base {base}")
        result = base * result + digit
    return result
