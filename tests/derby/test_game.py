"""Unit tests for /src/derby/game.py"""

import pytest

from src.core.exceptions import (
    GameFullError,
    GameStateError,
    MissingWinnerHorseError,
    NotYourTurnError,
    PlayerEliminatedError,
    PlayerNotFoundError,
    ScratchAssignmentExhaustedError,
)
from src.core.models import ScratchModel
from src.core.shared_types import Phase, Status
from src.derby.game import MAX_LOG_LINES, Game
from src.derby.horses import HORSE_STEPS
from tests.helpers import ScriptedRandom, build_game


# -- HELPERS --
def roll_turn(game: Game) -> None:
    assert game.turn_player_id is not None
    game.roll_for_player(game.turn_player_id)


def play_scratches(
    game: Game, rng: ScriptedRandom, horses: tuple[int, ...] = (2, 3, 4, 5)
) -> None:
    """Scratch the given horses, in order. Afterwards the race is on."""
    rng.queue_sums(*horses)
    for _ in horses:
        roll_turn(game)


def has_log(game: Game, message: str) -> bool:
    return any(line.endswith(f"| {message}") for line in game.logs)


def give_only(game: Game, horse: int, cards: dict[int, int]) -> None:
    """Take every card of `horse` away, then hand out `cards` (seat -> count) of it."""
    for player in game.players:
        player.discard(horse)
    for seat, count in cards.items():
        game.players[seat].hand.extend([horse] * count)


def setup_short_horse_win(game: Game, rng: ScriptedRandom) -> None:
    """Horse 12 only needs 2 steps: put it one step from the finish and load the dice for it."""
    game.horses[12].position = 1
    rng.queue_sums(12)


# -- CREATION LOGIC --
def test_new_game(rng: ScriptedRandom) -> None:
    game = Game.new_game(
        game_id="red-hoof-100",
        name="Friday Derby",
        max_players=6,
        starting_balance_cents=2000,
        standard_bet_cents=25,
        creator_id="abc",
        creator_name="Alice",
        rng=rng,
    )
    assert game.status == Status.WAITING
    assert game.phase == Phase.WAITING
    assert game.round == 0
    assert game.created_by == "abc"
    assert [player.id for player in game.players] == ["abc"]
    assert game.players[0].balance_cents == 2000
    assert not game.players[0].is_npc
    assert game.elimination_multiplier == 1
    assert game.turn_player_id is None
    assert {horse: state.steps for horse, state in game.horses.items()} == HORSE_STEPS
    assert has_log(game, "Game created by Alice")


def test_game_creation_from_model_roundtrip(started_game: Game, rng: ScriptedRandom) -> None:
    """Create a Game from a GameModel and convert back into GameModel"""
    play_scratches(started_game, rng)
    rng.queue_sums(7)
    roll_turn(started_game)

    expected_model = started_game.to_model()
    game = Game.from_model(expected_model)
    assert game.to_model() == expected_model
    assert game == started_game


# -- JOINING --
def test_add_player(rng: ScriptedRandom) -> None:
    game = build_game(rng, humans=1)
    game.add_player("bob", "Bob")
    assert [player.name for player in game.players] == ["Player 0", "Bob"]
    assert game.players[1].balance_cents == game.starting_balance_cents
    assert has_log(game, "Bob joined the game")


def test_add_player_to_full_game(waiting_game: Game) -> None:
    with pytest.raises(GameFullError):
        waiting_game.add_player("late", "Latecomer")
    assert len(waiting_game.players) == 4


def test_add_player_after_start(started_game: Game) -> None:
    with pytest.raises(GameStateError):
        started_game.add_player("late", "Latecomer")


def test_log_is_trimmed(rng: ScriptedRandom) -> None:
    game = build_game(rng, humans=1)
    game.logs = [f"line {idx}" for idx in range(MAX_LOG_LINES)]
    game.add_player("bob", "Bob")
    assert len(game.logs) == MAX_LOG_LINES
    assert game.logs[0] == "line 1"
    assert has_log(game, "Bob joined the game")


# -- STARTING --
def test_start_fills_empty_seats_with_npcs(rng: ScriptedRandom) -> None:
    game = build_game(rng, humans=1, max_players=5)
    game.start()

    npcs = game.players[1:]
    assert [npc.name for npc in npcs] == ["NPC 1", "NPC 2", "NPC 3", "NPC 4"]
    assert all(npc.is_npc for npc in npcs)
    assert all(npc.balance_cents == 2000 for npc in npcs)
    assert len({player.id for player in game.players}) == 5
    assert all(len(npc.id) == 16 for npc in npcs)
    assert has_log(game, "NPC 4 was added")


def test_no_npcs_with_four_humans(rng: ScriptedRandom) -> None:
    game = build_game(rng, humans=4, max_players=8)
    game.start()
    assert len(game.players) == 4
    assert not any(player.is_npc for player in game.players)


def test_first_round_setup(started_game: Game) -> None:
    game = started_game
    assert game.round == 1
    assert game.phase == Phase.SCRATCH
    assert game.dealer_index == 0
    assert game.turn_player_id == "p1"
    assert game.pot_cents == 0
    assert game.scratches == []
    assert all(len(player.hand) == 11 for player in game.players)
    assert all(player.hand == sorted(player.hand) for player in game.players)
    assert has_log(game, "Round 1 started")


def test_start_twice(started_game: Game) -> None:
    with pytest.raises(GameStateError):
        started_game.start()


# -- SCRATCH PHASE --
def test_scratch_amounts_escalate(started_game: Game, rng: ScriptedRandom) -> None:
    """2000 starting balance, 25 standard bet: scratches cost 25, 50, 75 and 100 per card."""
    game = started_game
    play_scratches(game, rng)

    assert [scratch.order for scratch in game.scratches] == [1, 2, 3, 4]
    assert [scratch.horse for scratch in game.scratches] == [2, 3, 4, 5]
    assert [scratch.amount_cents for scratch in game.scratches] == [25, 50, 75, 100]
    for scratch in game.scratches:
        assert game.horses[scratch.horse].position == -scratch.order
        assert game.horses[scratch.horse].scratched_order == scratch.order

    # every copy of the scratched horses was dealt, and nobody was short of money
    assert game.pot_cents == 4 * (25 + 50 + 75 + 100)
    assert sum(player.balance_cents for player in game.players) == 8000 - game.pot_cents
    assert not any(
        card in (2, 3, 4, 5) for player in game.players for card in player.hand
    )

    assert game.phase == Phase.RACE
    assert has_log(game, "Race started")
    # p1, p2, p3, p0 scratched: back to p1
    assert game.turn_player_id == "p1"


def test_scratch_log_and_last_roll(started_game: Game, rng: ScriptedRandom) -> None:
    game = started_game
    give_only(game, 11, {0: 2, 3: 1})
    rng.queue_sums(11)
    roll_turn(game)

    assert game.last_roll is not None
    assert game.last_roll.player_id == "p1"
    assert game.last_roll.value == 11
    assert game.last_roll.phase == Phase.SCRATCH
    assert has_log(
        game, "Player 1 scratched horse J (11) for $0.25 each card, collected $0.75"
    )
    assert game.turn_player_id == "p2"


def test_scratched_horse_is_not_drawn_twice(started_game: Game, rng: ScriptedRandom) -> None:
    game = started_game
    rng.queue_sums(6, 6, 6, 8)
    roll_turn(game)
    roll_turn(game)
    assert [scratch.horse for scratch in game.scratches] == [6, 8]


def test_scratch_payment_is_capped_at_balance(started_game: Game, rng: ScriptedRandom) -> None:
    game = started_game
    give_only(game, 2, {2: 2})
    game.players[2].balance_cents = 30

    rng.queue_sums(2)
    roll_turn(game)

    assert game.players[2].balance_cents == 0
    assert game.pot_cents == 30
    assert 2 not in game.players[2].hand
    # elimination only happens at the end of the round
    assert not game.players[2].eliminated


def test_scratch_assignment_exhausted(started_game: Game) -> None:
    """Only reachable when every horse is already scratched."""
    game = started_game
    game.scratches = [
        ScratchModel(order=idx + 1, horse=horse, amount_cents=25)
        for idx, horse in enumerate(HORSE_STEPS)
    ]
    with pytest.raises(ScratchAssignmentExhaustedError):
        roll_turn(game)


# -- RACE PHASE --
def test_race_roll_moves_horse(started_game: Game, rng: ScriptedRandom) -> None:
    game = started_game
    play_scratches(game, rng)
    rng.queue_sums(7)
    roll_turn(game)

    assert game.horses[7].position == 1
    assert game.last_roll is not None
    assert game.last_roll.phase == Phase.RACE
    assert game.last_roll.value == 7
    assert has_log(game, "Player 1 rolled 7, horse moved")
    assert game.turn_player_id == "p2"


def test_race_roll_on_scratched_horse_costs_the_roller_only(
    started_game: Game, rng: ScriptedRandom
) -> None:
    """Not a new scratch: the roller alone pays the horse's scratch amount once, regardless of cards."""
    game = started_game
    play_scratches(game, rng)
    balances = [player.balance_cents for player in game.players]
    pot = game.pot_cents

    rng.queue_sums(3)
    roll_turn(game)

    assert game.pot_cents == pot + 50
    assert game.players[1].balance_cents == balances[1] - 50
    assert [player.balance_cents for idx, player in enumerate(game.players) if idx != 1] == [
        balance for idx, balance in enumerate(balances) if idx != 1
    ]
    assert len(game.scratches) == 4
    assert game.horses[3].position == -2
    assert has_log(game, "Player 1 rolled 3 (scratched) and paid $0.50")
    assert game.turn_player_id == "p2"


def test_short_horse_wins_and_pays_holders(started_game: Game, rng: ScriptedRandom) -> None:
    """Horse 12 has 2 steps: already at 1, rolling it again wins the race."""
    game = started_game
    play_scratches(game, rng)
    shares = [player.cards_of(12) for player in game.players]
    balances = [player.balance_cents for player in game.players]
    assert game.pot_cents == 1000 and sum(shares) == 4

    setup_short_horse_win(game, rng)
    roll_turn(game)

    assert has_log(game, "Horse Q (12) won the race")
    assert [player.balance_cents for player in game.players] == [
        balance + count * 250 for balance, count in zip(balances, shares)
    ]
    assert game.pot_cents == 0

    # next round is dealt right away, dealer moved one seat
    assert game.round == 2
    assert game.phase == Phase.SCRATCH
    assert game.dealer_index == 1
    assert game.turn_player_id == "p2"
    assert game.scratches == []
    assert all(state.position == 0 for state in game.horses.values())
    assert has_log(game, "Round 2 started")


def test_pot_remainder_goes_to_lowest_seat(started_game: Game, rng: ScriptedRandom) -> None:
    """100 cents over 3 shares: 33 per share, the remaining cent to the lowest seat holding a share."""
    game = started_game
    play_scratches(game, rng)
    give_only(game, 12, {1: 1, 2: 2})
    game.pot_cents = 100
    balances = [player.balance_cents for player in game.players]

    setup_short_horse_win(game, rng)
    roll_turn(game)

    assert [player.balance_cents for player in game.players] == [
        balances[0],
        balances[1] + 34,
        balances[2] + 66,
        balances[3],
    ]
    assert game.pot_cents == 0


def test_unclaimed_pot_is_forfeited(started_game: Game, rng: ScriptedRandom) -> None:
    game = started_game
    play_scratches(game, rng)
    give_only(game, 12, {})
    balances = [player.balance_cents for player in game.players]

    setup_short_horse_win(game, rng)
    roll_turn(game)

    assert [player.balance_cents for player in game.players] == balances
    assert game.pot_cents == 0
    assert game.round == 2


# -- ELIMINATION --
def test_zero_balance_is_eliminated_at_payout(started_game: Game, rng: ScriptedRandom) -> None:
    game = started_game
    give_only(game, 2, {3: 1})
    game.players[3].balance_cents = 25

    # p1 scratches the 2: Player 3 is now broke, but still in
    play_scratches(game, rng)
    assert game.players[3].balance_cents == 0
    assert not game.players[3].eliminated

    give_only(game, 12, {0: 1, 1: 1, 2: 2})
    setup_short_horse_win(game, rng)
    roll_turn(game)

    assert game.players[3].eliminated
    assert has_log(game, "Player 3 was eliminated")
    assert game.elimination_multiplier == 2
    assert has_log(game, "Scratched horse amounts doubled x2")

    # next round goes on without Player 3
    assert game.status == Status.IN_PROGRESS
    assert game.round == 2
    assert game.players[3].hand == []
    assert sorted(len(game.players[idx].hand) for idx in range(3)) == [14, 15, 15]

    # penalties are doubled from now on
    rng.queue_sums(6)
    roll_turn(game)
    assert game.scratches[0].amount_cents == 50


def test_last_player_standing_wins(rng: ScriptedRandom) -> None:
    game = build_game(rng, humans=2, max_players=2)
    game.start()
    play_scratches(game, rng)
    give_only(game, 12, {1: 1})
    game.players[0].balance_cents = 0

    setup_short_horse_win(game, rng)
    roll_turn(game)

    assert game.status == Status.FINISHED
    assert game.phase == Phase.FINISHED
    assert game.turn_player_id is None
    assert game.winner_player_id == "p1"
    assert game.players[0].eliminated
    assert game.elimination_multiplier == 2
    assert has_log(game, "Player 1 won the game")

    with pytest.raises(GameStateError):
        game.roll_for_player("p1")


def test_everybody_eliminated(rng: ScriptedRandom) -> None:
    game = build_game(rng, humans=2, max_players=2)
    game.start()
    play_scratches(game, rng)
    give_only(game, 12, {})
    for player in game.players:
        player.balance_cents = 0
    game.pot_cents = 0

    setup_short_horse_win(game, rng)
    roll_turn(game)

    assert game.status == Status.FINISHED
    assert game.winner_player_id is None
    assert game.elimination_multiplier == 4
    assert has_log(game, "All players were eliminated")


def test_payout_without_winner_horse(started_game: Game) -> None:
    with pytest.raises(MissingWinnerHorseError):
        started_game._resolve_payout_and_round_end()


# -- ROLL VALIDATION --
def test_roll_before_start(waiting_game: Game) -> None:
    with pytest.raises(GameStateError):
        waiting_game.roll_for_player("p0")


def test_roll_out_of_turn_changes_nothing(started_game: Game) -> None:
    before = started_game.to_model()
    with pytest.raises(NotYourTurnError):
        started_game.roll_for_player("p0")
    assert started_game.to_model() == before


def test_roll_by_stranger(started_game: Game) -> None:
    with pytest.raises(PlayerNotFoundError):
        started_game.roll_for_player("not-a-player")


def test_roll_by_eliminated_player(started_game: Game) -> None:
    started_game.players[1].eliminated = True
    with pytest.raises(PlayerEliminatedError):
        started_game.roll_for_player("p1")


# -- NPC AUTOPLAY --
def test_autoplay_stops_at_human(rng: ScriptedRandom) -> None:
    game = build_game(rng, humans=1, max_players=4)
    game.start()
    assert game.turn_player_id == game.players[1].id

    rolls = game.autoplay_npc_turns()

    # three NPCs roll before the human's first turn
    assert rolls >= 3
    if game.status == Status.IN_PROGRESS:
        assert game.turn_player_id == "p0"


def test_autoplay_does_nothing_on_human_turn(started_game: Game) -> None:
    before = started_game.to_model()
    assert started_game.autoplay_npc_turns() == 0
    assert started_game.to_model() == before


def test_autoplay_does_nothing_before_start(waiting_game: Game) -> None:
    assert waiting_game.autoplay_npc_turns() == 0


# -- INVARIANTS OVER A LONG GAME --
@pytest.mark.parametrize("seed", [1, 2, 3])
def test_invariants_hold_over_many_rolls(seed: int) -> None:
    game = build_game(
        ScriptedRandom(seed=seed),
        humans=1,
        max_players=5,
        starting_balance_cents=200,
        standard_bet_cents=25,
    )
    game.start()
    total_money = 5 * 200
    multiplier = game.elimination_multiplier

    for _ in range(3000):
        if game.status != Status.IN_PROGRESS:
            break
        roll_turn(game)

        # money only moves between players and the pot
        assert sum(p.balance_cents for p in game.players) + game.pot_cents == total_money
        assert game.pot_cents >= 0
        assert all(p.balance_cents >= 0 for p in game.players)

        # multiplier: power of two, never decreasing
        assert game.elimination_multiplier >= multiplier
        assert game.elimination_multiplier & (game.elimination_multiplier - 1) == 0
        multiplier = game.elimination_multiplier

        if game.status == Status.IN_PROGRESS:
            turn_player = game.player_by_id(game.turn_player_id)
            assert turn_player is not None and not turn_player.eliminated
            assert game.winner_player_id is None
            if game.phase == Phase.SCRATCH and not game.scratches:
                sizes = [len(p.hand) for p in game.active_players]
                assert max(sizes) - min(sizes) <= 1
        else:
            assert game.turn_player_id is None
