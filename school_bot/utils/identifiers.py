from __future__ import annotations

import random
import secrets
from typing import Container

ID_LOWER_BOUND = 1_000_000_000
ID_UPPER_BOUND = 9_999_000_000  # exclusive
ID_LENGTH = 10
GRADE_ID_LENGTH = 32


def generate_record_id(existing: Container[str], rng: random.Random | None = None) -> str:
    """Return a 10-digit identifier that is not contained in ``existing``.

    Candidates are drawn uniformly and rejected until one misses.  Callers
    must serialise issuance (see ``Repository.transaction``); two concurrent
    callers looking at the same ``existing`` could pick the same value.
    """

    source = rng or random
    while True:
        candidate = str(source.randrange(ID_LOWER_BOUND, ID_UPPER_BOUND))
        if candidate not in existing:
            return candidate


def is_record_id(value: str) -> bool:
    return len(value) == ID_LENGTH and value.isdigit()


def generate_grade_id(existing: Container[str]) -> str:
    while True:
        candidate = secrets.token_hex(16)
        if candidate not in existing:
            return candidate


def is_grade_id(value: str) -> bool:
    return len(value) == GRADE_ID_LENGTH and all(char in "0123456789abcdef" for char in value)


__all__ = ["generate_record_id", "generate_grade_id", "is_grade_id", "is_record_id", "GRADE_ID_LENGTH", "ID_LENGTH"]
