"""Human-friendly game ids and opaque player ids."""

import secrets
from typing import Callable, Optional

from src.core.exceptions import IdGenerationError
from src.derby.dice import RandomSource, default_random

ID_ADJECTIVES = ["red", "blue", "gold", "fast", "lucky", "wild", "swift", "brisk", "eager", "prime"]
ID_NOUNS = ["track", "hoof", "sprint", "derby", "streak", "stride", "pacer", "thunder", "gallop", "stable"]
MAX_ID_ATTEMPTS = 100


def generate_game_id(
    exists: Callable[[str], bool], rng: Optional[RandomSource] = None
) -> str:
    """
    Pick an unused id like 'lucky-gallop-417'.
    exists() is asked about every candidate; the first one it does not know is returned.
    """
    rng = rng or default_random()
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = (
            f"{rng.choice(ID_ADJECTIVES)}-{rng.choice(ID_NOUNS)}-{rng.randint(100, 999)}"
        )
        if not exists(candidate):
            return candidate
    raise IdGenerationError(f"Unable to generate game id in {MAX_ID_ATTEMPTS} attempts")


def new_player_id() -> str:
    """16 hex characters from a cryptographically secure source."""
    return secrets.token_hex(8)
