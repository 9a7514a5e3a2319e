"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from src.api.models import (
    CreateGameRequest,
    GameResponse,
    JoinGameRequest,
    JoinResponse,
    RollRequest,
    StartGameRequest,
)
from src.core.exceptions import GameNotFoundError, NotGameCreatorError
from src.core.models import GameModel
from src.core.shared_types import Status
from src.db.repository import GameRepository
from src.derby.dice import RandomSource, default_random
from src.derby.game import Game
from src.derby.identifiers import generate_game_id, new_player_id
from src.derby.view import project_view

logger = logging.getLogger(__name__)


class DerbyService:
    """Orchestration of layers for the derby game."""

    def __init__(
        self, repository: GameRepository, rng: Optional[RandomSource] = None
    ) -> None:
        self.repo = repository
        self.rng = rng or default_random()

    # -- API routes logic ---
    def create_game(self, request: CreateGameRequest) -> JoinResponse:
        """A player creates a new game and takes the first seat."""
        game_id = generate_game_id(self.repo.id_exists, self.rng)
        player_id = new_player_id()
        game = Game.new_game(
            game_id=game_id,
            name=request.game_name,
            max_players=request.max_players,
            starting_balance_cents=request.starting_balance_cents,
            standard_bet_cents=request.standard_bet_cents,
            creator_id=player_id,
            creator_name=request.player_name,
            rng=self.rng,
        )
        self.repo.create_game(game.to_model())
        logger.info("Game %s created by %s", game_id, request.player_name)
        return JoinResponse(
            game_id=game_id, player_id=player_id, game=project_view(game, player_id)
        )

    def join_game(self, game_id: str, request: JoinGameRequest) -> JoinResponse:
        """Another player takes a seat at a waiting game."""
        player_id = new_player_id()
        with self._locked_game(game_id) as game:
            game.add_player(player_id, request.player_name)
        logger.info("%s joined game %s", request.player_name, game_id)
        return JoinResponse(
            game_id=game_id, player_id=player_id, game=project_view(game, player_id)
        )

    def start_game(self, game_id: str, request: StartGameRequest) -> GameResponse:
        """Only the creator may start. NPCs that happen to be first up play right away."""
        with self._locked_game(game_id) as game:
            if game.created_by != request.player_id:
                raise NotGameCreatorError("Only the game creator can start the game")
            game.start()
            self._autoplay(game)
        logger.info("Game %s started with %d players", game_id, len(game.players))
        return GameResponse(game=project_view(game, request.player_id))

    def roll(self, game_id: str, request: RollRequest) -> GameResponse:
        """The turn player rolls, then NPCs play until it is a human's turn again."""
        with self._locked_game(game_id) as game:
            game.roll_for_player(request.player_id)
            self._autoplay(game)
        logger.info(
            "Game %s: roll by %s, now round %d phase %s",
            game_id,
            request.player_id,
            game.round,
            game.phase,
        )
        return GameResponse(game=project_view(game, request.player_id))

    def get_game(self, game_id: str, viewer_id: Optional[str] = None) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend. A game in progress gets its pending NPC turns played first,
        so a game never stalls waiting on computer players.
        """
        stored = self._fetch_game(game_id)
        if stored.status != Status.IN_PROGRESS:
            return GameResponse(game=project_view(Game.from_model(stored, self.rng), viewer_id))

        with self._locked_game(game_id) as game:
            self._autoplay(game)
        return GameResponse(game=project_view(game, viewer_id))

    def list_games(self) -> list[str]:
        return self.repo.list_game_ids()

    def delete_game(self, game_id: str) -> None:
        """Handle a request to delete a Game record."""
        with self.repo.lock(game_id):
            if self.repo.delete_game(game_id) is None:
                raise GameNotFoundError(f"Game with {game_id=} not found.")
        logger.info("Game %s deleted", game_id)

    # -- Internal helpers --
    @contextmanager
    def _locked_game(self, game_id: str) -> Generator[Game, None, None]:
        """
        Load -> mutate -> persist, all under the game's lock.
        NOTE if the body raises, nothing is written and the lock is still released.
        """
        with self.repo.lock(game_id):
            stored = self._fetch_game(game_id)
            game = Game.from_model(stored, rng=self.rng)
            yield game
            updated = game.to_model()
            if updated != stored:
                self.repo.update_game(game_id, updated)

    def _autoplay(self, game: Game) -> None:
        rolls = game.autoplay_npc_turns()
        if rolls:
            logger.info("Game %s: played %d NPC roll(s)", game.id, rolls)

    def _fetch_game(self, game_id: str) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise GameNotFoundError(f"Game with {game_id=} not found.")
        return game_model
