"""What a player (or an anonymous spectator) gets to see of a game."""

from typing import Optional

from src.core.models import GameView, PlayerView, ViewerView
from src.core.shared_types import Status
from src.derby.game import Game

VIEW_LOG_LINES = 40


def project_view(game: Game, viewer_id: Optional[str] = None) -> GameView:
    """
    Read-only snapshot of the game for viewer_id.
    ----
    Hand counts are public, hand contents only for the viewer themselves.
    An unknown (or missing) viewer_id gets a spectator view: viewer is None and every hand is hidden.
    """
    model = game.to_model()
    viewer = game.player_by_id(viewer_id)

    players = [
        PlayerView(
            id=player.id,
            name=player.name,
            is_npc=player.is_npc,
            eliminated=player.eliminated,
            balance_cents=player.balance_cents,
            hand_count=len(player.hand),
            hand=list(player.hand) if viewer is not None and player.id == viewer.id else [],
        )
        for player in game.players
    ]

    viewer_view = None
    if viewer is not None:
        viewer_view = ViewerView(
            id=viewer.id,
            name=viewer.name,
            eliminated=viewer.eliminated,
            balance_cents=viewer.balance_cents,
            hand=list(viewer.hand),
            can_roll=game.turn_player_id == viewer.id
            and game.status == Status.IN_PROGRESS,
        )

    turn_player = game.player_by_id(game.turn_player_id)
    return GameView(
        id=game.id,
        name=game.name,
        status=game.status,
        round=game.round,
        phase=game.phase,
        pot_cents=game.pot_cents,
        standard_bet_cents=game.standard_bet_cents,
        elimination_multiplier=game.elimination_multiplier,
        turn_player_id=game.turn_player_id,
        turn_player_name=None if turn_player is None else turn_player.name,
        horses=model.horses,
        scratches=model.scratches,
        last_roll=model.last_roll,
        winner_horse=game.winner_horse,
        winner_player_id=game.winner_player_id,
        viewer=viewer_view,
        players=players,
        logs=game.logs[-VIEW_LOG_LINES:],
    )
