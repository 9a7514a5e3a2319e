"""A seat at the table: human or NPC."""

from dataclasses import dataclass, field
from typing import Self

from src.core.models import PlayerModel


@dataclass
class Player:
    id: str
    name: str
    is_npc: bool
    balance_cents: int
    eliminated: bool = False
    hand: list[int] = field(default_factory=list)

    @classmethod
    def from_model(cls, model: PlayerModel) -> Self:
        return cls(
            id=model.id,
            name=model.name,
            is_npc=model.is_npc,
            balance_cents=model.balance_cents,
            eliminated=model.eliminated,
            hand=list(model.hand),
        )

    def to_model(self) -> PlayerModel:
        return PlayerModel(
            id=self.id,
            name=self.name,
            is_npc=self.is_npc,
            eliminated=self.eliminated,
            balance_cents=self.balance_cents,
            hand=list(self.hand),
        )

    @property
    def is_active(self) -> bool:
        return not self.eliminated

    def cards_of(self, horse: int) -> int:
        return self.hand.count(horse)

    def discard(self, horse: int) -> None:
        """Drop every card of this horse from the hand."""
        self.hand = [card for card in self.hand if card != horse]

    def pay(self, amount_cents: int) -> int:
        """
        Pay up to amount_cents. Returns what was actually paid.
        NOTE the balance is capped at zero here. Elimination is decided later, at the end of the round.
        """
        paid = min(amount_cents, self.balance_cents)
        self.balance_cents -= paid
        return paid

    def credit(self, amount_cents: int) -> None:
        self.balance_cents += amount_cents
