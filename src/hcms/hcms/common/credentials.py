"""Generated login credentials for staff users and teachers."""

from __future__ import annotations

import random
import re
import string
from typing import Iterable, Optional

from ..core.constants import (
    PASSWORD_SPECIALS,
    STAFF_PASSWORD_ALPHABET,
    STAFF_PASSWORD_LENGTH,
    TEACHER_PASSWORD_LENGTH,
    USERNAME_SUFFIX_RANGE,
)

_system_random = random.SystemRandom()


def generate_staff_username(full_name: str, *, rng: Optional[random.Random] = None) -> str:
    """`Jane O'Neil` -> `janeoneil` plus a random 0-999 suffix."""
    rng = rng or _system_random
    cleaned = re.sub(r"[^a-z0-9]", "", (full_name or "").lower())
    return f"{cleaned}{rng.randrange(USERNAME_SUFFIX_RANGE)}"


def generate_staff_password(*, rng: Optional[random.Random] = None) -> str:
    rng = rng or _system_random
    return "".join(rng.choice(STAFF_PASSWORD_ALPHABET) for _ in range(STAFF_PASSWORD_LENGTH))


def generate_teacher_username(first_name: str, last_name: str, existing: Iterable[str] = ()) -> str:
    """`first.last`, or `first.last1`, `first.last2`, ... when taken."""
    taken = set(existing)
    base = f"{(first_name or '').strip().lower()}.{(last_name or '').strip().lower()}"
    if base not in taken:
        return base

    counter = 1
    while f"{base}{counter}" in taken:
        counter += 1
    return f"{base}{counter}"


def generate_teacher_password(*, rng: Optional[random.Random] = None) -> str:
    """At least one upper, lower, digit and special character, shuffled."""
    rng = rng or _system_random
    pools = [string.ascii_uppercase, string.ascii_lowercase, string.digits, PASSWORD_SPECIALS]
    every = "".join(pools)

    chars = [rng.choice(pool) for pool in pools]
    chars += [rng.choice(every) for _ in range(TEACHER_PASSWORD_LENGTH - len(chars))]
    rng.shuffle(chars)
    return "".join(chars)
