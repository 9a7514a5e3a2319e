"""
Building and dealing the deck.

Cards carry nothing but a horse value. Seats are identified by their index in the (never reordered) player list.
"""

from src.core.exceptions import DealingImbalanceError, NoActivePlayersError
from src.derby.dice import RandomSource
from src.derby.horses import HORSE_VALUES
from src.derby.player import Player

COPIES_PER_HORSE = 4


def build_deck() -> list[int]:
    return [horse for horse in HORSE_VALUES for _ in range(COPIES_PER_HORSE)]


def shuffled_deck(rng: RandomSource) -> list[int]:
    deck = build_deck()
    rng.shuffle(deck)
    return deck


# --- SEATING HELPERS ---
def active_indexes(players: list[Player]) -> list[int]:
    return [idx for idx, player in enumerate(players) if player.is_active]


def first_active_index(players: list[Player]) -> int:
    for idx, player in enumerate(players):
        if player.is_active:
            return idx
    raise NoActivePlayersError("No active players")


def next_active_index(players: list[Player], after_index: int) -> int:
    """First active seat strictly after after_index, wrapping around the table."""
    count = len(players)
    for step in range(1, count + 1):
        idx = (after_index + step) % count
        if players[idx].is_active:
            return idx
    raise NoActivePlayersError("No active players")


# --- DEALING ---
def deal_round_robin(players: list[Player], deck: list[int], dealer_index: int) -> None:
    """Deal the whole deck, one card at a time, starting left of the dealer. Eliminated seats are skipped."""
    deck = list(deck)
    current = next_active_index(players, dealer_index)
    while deck:
        players[current].hand.append(deck.pop())
        current = next_active_index(players, current)


def assert_balanced_hands(players: list[Player]) -> None:
    counts = [len(players[idx].hand) for idx in active_indexes(players)]
    if len(counts) <= 1:
        return
    if max(counts) - min(counts) > 1:
        raise DealingImbalanceError(f"Card dealing failed balance check: {counts}")
