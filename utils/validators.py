# utils/validators.py

# =========================================
# Necessary imports
# =========================================

from __future__ import annotations

import re

from typing import List

from utils.normalize import only_digits

# =========================================
# Validators
# =========================================

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    """Check the simple local@domain.tld shape (no whitespace, single '@')."""
    return bool(_EMAIL_RE.fullmatch(str(email or "")))

def _check_digit(digits: List[int], first_weight: int) -> int:
    total = sum(d * w for d, w in zip(digits, range(first_weight, 1, -1)))
    rest = (total * 10) % 11
    return 0 if rest in (10, 11) else rest

def is_valid_cpf(cpf: str) -> bool:
    """
    Validate a Brazilian CPF number with its two check digits.

    Parameters
    ----------
    cpf:
        The number, with or without punctuation ("529.982.247-25" or
        "52998224725").

    Returns
    -------
    bool
        True when the cleaned value has 11 digits, is not the all-zero
        sequence, and both check digits match.

    Algorithm
    ---------
    1. First check digit: digits 1-9 weighted 10 down to 2,
       ``(sum * 10) % 11``, with 10 or 11 mapped to 0; must equal digit 10.
    2. Second check digit: digits 1-10 weighted 11 down to 2, same rule;
       must equal digit 11.

    Example
    -------
    >>> is_valid_cpf("52998224725")
    True
    >>> is_valid_cpf("00000000000")
    False
    """
    clean = only_digits(cpf)
    if len(clean) != 11 or clean == "00000000000":
        return False

    digits = [int(ch) for ch in clean]
    if _check_digit(digits[:9], 10) != digits[9]:
        return False
    return _check_digit(digits[:10], 11) == digits[10]
