"""Shared test helpers: a random source with loadable dice, and a game builder."""

import random
from collections import deque

from src.derby.game import Game


class ScriptedRandom(random.Random):
    def __init__(self, seed: int = 0) -> None:
        super().__init__(seed)
        self.faces: deque[int] = deque()

    def queue_sums(self, *sums: int) -> None:
        """Next dice rolls will add up to these sums, in order."""
        for total in sums:
            first = min(total - 1, 6)
            self.faces.extend([first, total - first])

    def randint(self, a: int, b: int) -> int:
        if self.faces and (a, b) == (1, 6):
            return self.faces.popleft()
        return super().randint(a, b)


def build_game(
    rng: ScriptedRandom,
    humans: int = 4,
    max_players: int = 4,
    starting_balance_cents: int = 2000,
    standard_bet_cents: int = 25,
) -> Game:
    """Waiting game with `humans` human players seated (p0 is the creator)."""
    game = Game.new_game(
        game_id="lucky-derby-123",
        name="Test Derby",
        max_players=max_players,
        starting_balance_cents=starting_balance_cents,
        standard_bet_cents=standard_bet_cents,
        creator_id="p0",
        creator_name="Player 0",
        rng=rng,
    )
    for seat in range(1, humans):
        game.add_player(f"p{seat}", f"Player {seat}")
    return game
