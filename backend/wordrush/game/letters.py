from __future__ import annotations

import random
import string
from typing import Iterable

LETTERS: tuple[str, ...] = tuple(string.ascii_uppercase)


def draw_letter(used_letters: Iterable[str], rng: random.Random | None = None) -> str:
    """Pick a letter not in ``used_letters``; once all 26 are used, any letter."""
    rng = rng or random
    used = {str(letter).upper() for letter in used_letters}
    available = [letter for letter in LETTERS if letter not in used]
    if available:
        return rng.choice(available)
    return rng.choice(LETTERS)
