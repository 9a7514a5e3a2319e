"""Requests and Response models"""

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.models import GameView

MIN_PLAYERS = 2
MAX_PLAYERS = 10


def _required_text(value: str, field_name: str) -> str:
    value = value.strip()
    if not value:
        raise InvalidRequestError(f"{field_name} is required.")
    return value


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    game_name: str = "New Derby Game"
    player_name: str = "Player 1"
    max_players: int = 4
    starting_balance_cents: int = 2000
    standard_bet_cents: int = 25

    @field_validator("game_name", "player_name")
    @classmethod
    def validate_names(cls, value: str) -> str:
        return _required_text(value, "Game name and player name")

    @field_validator("max_players")
    @classmethod
    def validate_max_players(cls, value: int) -> int:
        if not MIN_PLAYERS <= value <= MAX_PLAYERS:
            raise InvalidRequestError(
                f"Players must be between {MIN_PLAYERS} and {MAX_PLAYERS}, got {value}."
            )
        return value

    @field_validator("starting_balance_cents", "standard_bet_cents")
    @classmethod
    def validate_positive_amount(cls, value: int) -> int:
        if value <= 0:
            raise InvalidRequestError(
                "Starting balance and standard bet must be greater than 0."
            )
        return value


class JoinGameRequest(BaseModel):
    player_name: str = "Player"

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _required_text(value, "Player name")


class StartGameRequest(BaseModel):
    player_id: str


class RollRequest(BaseModel):
    player_id: str

    @field_validator("player_id")
    @classmethod
    def validate_player_id(cls, value: str) -> str:
        return _required_text(value, "playerId")


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game: GameView


class JoinResponse(BaseModel):
    game_id: str
    player_id: str
    game: GameView
