"""
The Game class is the entrypoint into the domain layer for the service layer.
It owns the full state of one derby game and every rule that mutates it:
round lifecycle, scratch / race rolls, payouts and eliminations, and NPC autoplay.

NOTE the Game is a plain mutable object. The service layer is responsible for only ever having
one of these alive per game id at a time (see src/db/locks.py).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Self

from src.core.exceptions import (
    GameFullError,
    GameStateError,
    MissingWinnerHorseError,
    NotYourTurnError,
    PlayerEliminatedError,
    PlayerNotFoundError,
    ScratchAssignmentExhaustedError,
)
from src.core.models import GameModel, RollModel, ScratchModel
from src.core.shared_types import Phase, Status
from src.derby.deck import (
    active_indexes,
    assert_balanced_hands,
    deal_round_robin,
    first_active_index,
    next_active_index,
    shuffled_deck,
)
from src.derby.dice import RandomSource, default_random, roll_dice
from src.derby.horses import HorseState, horse_label, new_horses
from src.derby.identifiers import new_player_id
from src.derby.payout import format_money, scratch_amount_cents, split_pot
from src.derby.player import Player

SCRATCH_COUNT = 4
MAX_SCRATCH_ATTEMPTS = 100
MIN_HUMANS_WITHOUT_NPCS = 4
MAX_LOG_LINES = 300


def log_line(message: str) -> str:
    return f"{datetime.now(timezone.utc):%H:%M:%S} UTC | {message}"


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    id: str
    name: str
    created_by: str
    created_at: str
    max_players: int
    starting_balance_cents: int
    standard_bet_cents: int
    status: Status
    round: int
    phase: Phase
    players: list[Player]
    dealer_index: int
    turn_player_id: Optional[str]
    pot_cents: int
    elimination_multiplier: int
    horses: dict[int, HorseState]
    scratches: list[ScratchModel]
    winner_horse: Optional[int]
    winner_player_id: Optional[str]
    last_roll: Optional[RollModel]
    logs: list[str]
    rng: RandomSource = field(default_factory=default_random, repr=False, compare=False)

    @classmethod
    def from_model(cls, model: GameModel, rng: Optional[RandomSource] = None) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""
        return cls(
            id=model.id,
            name=model.name,
            created_by=model.created_by,
            created_at=model.created_at,
            max_players=model.max_players,
            starting_balance_cents=model.starting_balance_cents,
            standard_bet_cents=model.standard_bet_cents,
            status=Status(model.status),
            round=model.round,
            phase=Phase(model.phase),
            players=[Player.from_model(player) for player in model.players],
            dealer_index=model.dealer_index,
            turn_player_id=model.turn_player_id,
            pot_cents=model.pot_cents,
            elimination_multiplier=model.elimination_multiplier,
            horses={
                horse: HorseState.from_model(state)
                for horse, state in model.horses.items()
            },
            scratches=list(model.scratches),
            winner_horse=model.winner_horse,
            winner_player_id=model.winner_player_id,
            last_roll=model.last_roll,
            logs=list(model.logs),
            rng=rng or default_random(),
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            id=self.id,
            name=self.name,
            created_by=self.created_by,
            created_at=self.created_at,
            max_players=self.max_players,
            starting_balance_cents=self.starting_balance_cents,
            standard_bet_cents=self.standard_bet_cents,
            status=self.status,
            round=self.round,
            phase=self.phase,
            players=[player.to_model() for player in self.players],
            dealer_index=self.dealer_index,
            turn_player_id=self.turn_player_id,
            pot_cents=self.pot_cents,
            elimination_multiplier=self.elimination_multiplier,
            horses={horse: state.to_model() for horse, state in self.horses.items()},
            scratches=list(self.scratches),
            winner_horse=self.winner_horse,
            winner_player_id=self.winner_player_id,
            last_roll=self.last_roll,
            logs=list(self.logs),
        )

    @classmethod
    def new_game(
        cls,
        game_id: str,
        name: str,
        max_players: int,
        starting_balance_cents: int,
        standard_bet_cents: int,
        creator_id: str,
        creator_name: str,
        rng: Optional[RandomSource] = None,
    ) -> Self:
        """
        A new game, waiting for players, with the creator in the first seat.
        NOTE input validation (player range, positive amounts, unique id) is the caller's job.
        """
        creator = Player(
            id=creator_id,
            name=creator_name,
            is_npc=False,
            balance_cents=starting_balance_cents,
        )
        return cls(
            id=game_id,
            name=name,
            created_by=creator_id,
            created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            max_players=max_players,
            starting_balance_cents=starting_balance_cents,
            standard_bet_cents=standard_bet_cents,
            status=Status.WAITING,
            round=0,
            phase=Phase.WAITING,
            players=[creator],
            dealer_index=0,
            turn_player_id=None,
            pot_cents=0,
            elimination_multiplier=1,
            horses=new_horses(),
            scratches=[],
            winner_horse=None,
            winner_player_id=None,
            last_roll=None,
            logs=[log_line(f"Game created by {creator_name}")],
            rng=rng or default_random(),
        )

    # --- LOOKUPS ---
    def player_index(self, player_id: Optional[str]) -> Optional[int]:
        if player_id is None:
            return None
        return next(
            (idx for idx, player in enumerate(self.players) if player.id == player_id),
            None,
        )

    def player_by_id(self, player_id: Optional[str]) -> Optional[Player]:
        idx = self.player_index(player_id)
        return None if idx is None else self.players[idx]

    @property
    def active_players(self) -> list[Player]:
        return [player for player in self.players if player.is_active]

    # --- LIFECYCLE ---
    def add_player(self, player_id: str, name: str) -> None:
        """Seat another human player while the game is still waiting to start."""
        if self.status != Status.WAITING:
            raise GameStateError(f"Game already started. status: {self.status}")
        if len(self.players) >= self.max_players:
            raise GameFullError(f"Game is full ({self.max_players} players)")

        self.players.append(
            Player(
                id=player_id,
                name=name,
                is_npc=False,
                balance_cents=self.starting_balance_cents,
            )
        )
        self._push_log(f"{name} joined the game")

    def start(self) -> None:
        """
        Start the game.
        ----
        Short-handed tables (fewer than 4 humans) get the empty seats filled up with NPCs.
        """
        if self.status != Status.WAITING:
            raise GameStateError(f"Game already started. status: {self.status}")

        human_count = sum(1 for player in self.players if not player.is_npc)
        if human_count < MIN_HUMANS_WITHOUT_NPCS:
            npc_number = 1
            while len(self.players) < self.max_players:
                npc_name = f"NPC {npc_number}"
                npc_number += 1
                self.players.append(
                    Player(
                        id=new_player_id(),
                        name=npc_name,
                        is_npc=True,
                        balance_cents=self.starting_balance_cents,
                    )
                )
                self._push_log(f"{npc_name} was added")

        self.status = Status.IN_PROGRESS
        self.round = 0
        self._setup_next_round()

    # --- ROLLING ---
    def roll_for_player(self, player_id: str) -> None:
        """A player asks to roll. All checks happen before anything changes."""
        if self.status != Status.IN_PROGRESS:
            raise GameStateError(f"Game is not active. status: {self.status}")
        if self.phase not in (Phase.SCRATCH, Phase.RACE):
            raise GameStateError(f"Cannot roll during phase: {self.phase}")
        if self.turn_player_id is None:
            raise GameStateError("No current turn")

        player = self.player_by_id(player_id)
        if player is None:
            raise PlayerNotFoundError(f"No player with id {player_id!r} in this game")
        if self.turn_player_id != player_id:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self._turn_player_name()} to roll first."
            )
        if player.eliminated:
            raise PlayerEliminatedError(f"{player.name} is eliminated")

        self._roll_current_turn()

    def autoplay_npc_turns(self) -> int:
        """
        Roll for NPCs until a human is up, or the game ends.
        Returns the number of rolls made.

        NOTE always terminates: each roll moves a scratch count, a horse, or a round forward, and every round ends with a payout.
        """
        rolls = 0
        while self.status == Status.IN_PROGRESS:
            turn_player = self.player_by_id(self.turn_player_id)
            if turn_player is None or not turn_player.is_npc:
                break
            self._roll_current_turn()
            rolls += 1
        return rolls

    # -- PRIVATE HELPERS ---
    def _turn_player_name(self) -> Optional[str]:
        player = self.player_by_id(self.turn_player_id)
        return None if player is None else player.name

    def _push_log(self, message: str) -> None:
        self.logs.append(log_line(message))
        if len(self.logs) > MAX_LOG_LINES:
            self.logs = self.logs[-MAX_LOG_LINES:]

    def _advance_turn(self, from_index: int) -> None:
        self.turn_player_id = self.players[
            next_active_index(self.players, from_index)
        ].id

    def _scratch_for_horse(self, horse: int) -> Optional[ScratchModel]:
        return next(
            (scratch for scratch in self.scratches if scratch.horse == horse), None
        )

    # --- ROUND SETUP ---
    def _setup_next_round(self) -> None:
        self.round += 1
        self.phase = Phase.SCRATCH
        self.pot_cents = 0
        self.scratches = []
        self.horses = new_horses()
        self.winner_horse = None
        self.last_roll = None

        remaining = active_indexes(self.players)
        if len(remaining) <= 1:
            self._finish(remaining)
            return

        if self.round == 1:
            self.dealer_index = first_active_index(self.players)
        else:
            self.dealer_index = next_active_index(self.players, self.dealer_index)

        for player in self.players:
            player.hand = []

        deal_round_robin(self.players, shuffled_deck(self.rng), self.dealer_index)
        assert_balanced_hands(self.players)
        for idx in remaining:
            self.players[idx].hand.sort()

        self._advance_turn(self.dealer_index)
        self._push_log(f"Round {self.round} started")

    # --- ROLL RESOLUTION ---
    def _roll_current_turn(self) -> None:
        roller_index = self.player_index(self.turn_player_id)
        if roller_index is None:
            raise GameStateError("No current turn")

        if self.phase == Phase.SCRATCH:
            self._apply_scratch_roll(roller_index)
            if len(self.scratches) >= SCRATCH_COUNT:
                self.phase = Phase.RACE
                self._push_log("Race started")
            self._advance_turn(roller_index)
            return

        if self.phase == Phase.RACE:
            if self._apply_race_roll(roller_index):
                # round is over, payout already moved on to the next round (or ended the game)
                return
            self._advance_turn(roller_index)
            return

        raise GameStateError(f"Cannot roll during phase: {self.phase}")

    def _draw_unscratched_horse(self) -> int:
        for _ in range(MAX_SCRATCH_ATTEMPTS):
            horse = roll_dice(self.rng)
            if self._scratch_for_horse(horse) is None:
                return horse
        raise ScratchAssignmentExhaustedError(
            f"Could not roll an unscratched horse in {MAX_SCRATCH_ATTEMPTS} attempts"
        )

    def _apply_scratch_roll(self, roller_index: int) -> None:
        """Scratch a fresh horse. Every holder pays per card, and loses those cards."""
        roller = self.players[roller_index]
        order = len(self.scratches) + 1
        horse = self._draw_unscratched_horse()
        amount = scratch_amount_cents(
            self.standard_bet_cents, order, self.elimination_multiplier
        )
        self.scratches.append(ScratchModel(order=order, horse=horse, amount_cents=amount))
        self.horses[horse].scratch(order)

        total_collected = 0
        for player in self.active_players:
            count = player.cards_of(horse)
            if count == 0:
                continue
            paid = player.pay(count * amount)
            self.pot_cents += paid
            total_collected += paid
            player.discard(horse)

        self.last_roll = RollModel(
            player_id=roller.id, player_name=roller.name, value=horse, phase=Phase.SCRATCH
        )
        self._push_log(
            f"{roller.name} scratched horse {horse_label(horse)} for {format_money(amount)} each card, "
            f"collected {format_money(total_collected)}"
        )

    def _apply_race_roll(self, roller_index: int) -> bool:
        """
        Move a horse forward, or make the roller pay when a scratched horse comes up.
        Returns True when the roll won the race.

        NOTE hitting a scratched horse costs the roller alone, once (not per card).
        """
        roller = self.players[roller_index]
        value = roll_dice(self.rng)
        self.last_roll = RollModel(
            player_id=roller.id, player_name=roller.name, value=value, phase=Phase.RACE
        )

        scratch = self._scratch_for_horse(value)
        if scratch is not None:
            paid = roller.pay(scratch.amount_cents)
            self.pot_cents += paid
            self._push_log(
                f"{roller.name} rolled {value} (scratched) and paid {format_money(paid)}"
            )
            return False

        horse = self.horses[value]
        horse.advance()
        self._push_log(f"{roller.name} rolled {value}, horse moved")
        if not horse.has_finished:
            return False

        self.winner_horse = value
        self._push_log(f"Horse {horse_label(value)} won the race")
        self._resolve_payout_and_round_end()
        return True

    # --- PAYOUT & ELIMINATION ---
    def _resolve_payout_and_round_end(self) -> None:
        horse = self.winner_horse
        if horse is None:
            raise MissingWinnerHorseError("Payout requested without a winning horse")

        shares = {
            idx: self.players[idx].cards_of(horse)
            for idx in active_indexes(self.players)
        }
        for idx, amount in split_pot(self.pot_cents, shares).items():
            self.players[idx].credit(amount)
        # unclaimed pots are forfeited, never carried over
        self.pot_cents = 0

        eliminated_count = 0
        for player in self.players:
            if player.is_active and player.balance_cents <= 0:
                player.eliminated = True
                eliminated_count += 1
                self._push_log(f"{player.name} was eliminated")

        if eliminated_count > 0:
            self.elimination_multiplier *= 2**eliminated_count
            self._push_log(
                f"Scratched horse amounts doubled x{self.elimination_multiplier}"
            )

        remaining = active_indexes(self.players)
        if len(remaining) <= 1:
            self._finish(remaining)
            return

        self._setup_next_round()

    def _finish(self, remaining: list[int]) -> None:
        self.status = Status.FINISHED
        self.phase = Phase.FINISHED
        self.turn_player_id = None
        if len(remaining) == 1:
            winner = self.players[remaining[0]]
            self.winner_player_id = winner.id
            self._push_log(f"{winner.name} won the game")
        else:
            self._push_log("All players were eliminated")
