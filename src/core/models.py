"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)

NOTE the persisted models are pydantic dataclasses: plain dataclasses to work with, but decoding a stored record validates its shape.
Scalars are strict (no "100" -> 100, no "yes" -> True), only enum values are read from their string form.
"""

from dataclasses import field
from dataclasses import dataclass as std_dataclass
from typing import Any, Optional

from pydantic import ConfigDict, StrictBool, StrictInt, StrictStr, field_validator
from pydantic.dataclasses import dataclass

from src.core.shared_types import Phase, Status

# Type aliases to make GameModel easier to read
PlayerId = StrictStr
HorseValue = StrictInt

RECORD_CONFIG = ConfigDict(extra="forbid")


@dataclass(config=RECORD_CONFIG)
class PlayerModel:
    id: PlayerId
    name: StrictStr
    is_npc: StrictBool
    eliminated: StrictBool
    balance_cents: StrictInt
    hand: list[HorseValue] = field(default_factory=list)


@dataclass(config=RECORD_CONFIG)
class HorseModel:
    steps: StrictInt
    position: StrictInt = 0
    scratched_order: Optional[StrictInt] = None


@dataclass(config=RECORD_CONFIG)
class ScratchModel:
    order: StrictInt
    horse: HorseValue
    amount_cents: StrictInt


@dataclass(config=RECORD_CONFIG)
class RollModel:
    player_id: PlayerId
    player_name: StrictStr
    value: HorseValue
    phase: Phase


@dataclass(config=RECORD_CONFIG)
class GameModel:
    """Transport-safe representation of a derby game used between API, Service, DB, and Game layers."""

    id: StrictStr
    name: StrictStr
    created_by: PlayerId
    created_at: StrictStr
    max_players: StrictInt
    starting_balance_cents: StrictInt
    standard_bet_cents: StrictInt
    status: Status
    round: StrictInt
    phase: Phase
    players: list[PlayerModel]
    dealer_index: StrictInt
    turn_player_id: Optional[PlayerId]
    pot_cents: StrictInt
    elimination_multiplier: StrictInt
    horses: dict[HorseValue, HorseModel]
    scratches: list[ScratchModel]
    winner_horse: Optional[HorseValue]
    winner_player_id: Optional[PlayerId]
    last_roll: Optional[RollModel]
    logs: list[StrictStr]

    @field_validator("horses", mode="before")
    @classmethod
    def horse_keys_from_json(cls, value: Any) -> Any:
        """JSON object keys are always strings: "7" -> 7, anything else is left for strict validation to reject."""
        if not isinstance(value, dict):
            return value
        return {
            int(key) if isinstance(key, str) and key.isdigit() else key: horse
            for key, horse in value.items()
        }


# --- READ-ONLY PROJECTIONS ---
@std_dataclass(frozen=True)
class PlayerView:
    id: PlayerId
    name: str
    is_npc: bool
    eliminated: bool
    balance_cents: int
    hand_count: int
    hand: list[HorseValue]


@std_dataclass(frozen=True)
class ViewerView:
    id: PlayerId
    name: str
    eliminated: bool
    balance_cents: int
    hand: list[HorseValue]
    can_roll: bool


@std_dataclass(frozen=True)
class GameView:
    """What a single viewer is allowed to see of a game."""

    id: str
    name: str
    status: Status
    round: int
    phase: Phase
    pot_cents: int
    standard_bet_cents: int
    elimination_multiplier: int
    turn_player_id: Optional[PlayerId]
    turn_player_name: Optional[str]
    horses: dict[HorseValue, HorseModel]
    scratches: list[ScratchModel]
    last_roll: Optional[RollModel]
    winner_horse: Optional[HorseValue]
    winner_player_id: Optional[PlayerId]
    viewer: Optional[ViewerView]
    players: list[PlayerView]
    logs: list[str]
