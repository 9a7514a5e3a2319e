"""The eleven horses (one per dice sum) and their per-round race state."""

from dataclasses import dataclass
from typing import Optional, Self

from src.core.models import HorseModel

# Distance each horse must cover to win. Mirrors the odds of rolling the sum with two dice.
HORSE_STEPS: dict[int, int] = {
    2: 2,
    3: 5,
    4: 7,
    5: 10,
    6: 13,
    7: 16,
    8: 13,
    9: 10,
    10: 7,
    11: 5,
    12: 2,
}

HORSE_VALUES: list[int] = sorted(HORSE_STEPS)

HORSE_LABELS: dict[int, str] = {11: "J (11)", 12: "Q (12)"}


def horse_label(horse: int) -> str:
    return HORSE_LABELS.get(horse, str(horse))


@dataclass
class HorseState:
    steps: int
    position: int = 0
    scratched_order: Optional[int] = None

    @classmethod
    def from_model(cls, model: HorseModel) -> Self:
        return cls(model.steps, model.position, model.scratched_order)

    def to_model(self) -> HorseModel:
        return HorseModel(
            steps=self.steps,
            position=self.position,
            scratched_order=self.scratched_order,
        )

    @property
    def is_scratched(self) -> bool:
        return self.scratched_order is not None

    @property
    def has_finished(self) -> bool:
        return not self.is_scratched and self.position >= self.steps

    def scratch(self, order: int) -> None:
        """NOTE negative position encodes the scratch rank for display purposes."""
        self.scratched_order = order
        self.position = -order

    def advance(self) -> None:
        self.position += 1


def new_horses() -> dict[int, HorseState]:
    """Fresh field for a new round: everyone at the starting line, nobody scratched."""
    return {horse: HorseState(steps) for horse, steps in HORSE_STEPS.items()}
