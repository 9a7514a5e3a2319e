"""Protocol repository (implemented for SQLAlchemy and for plain JSON files)"""

from contextlib import AbstractContextManager
from typing import Protocol

from src.core.models import GameModel


class GameRepository(Protocol):
    """Persistence layer orchestration"""

    def get_game(self, game_id: str) -> GameModel | None:
        """Get game by ID, if record exists."""
        ...

    def id_exists(self, game_id: str) -> bool:
        """Is there a record with this ID already?"""
        ...

    def create_game(self, game: GameModel) -> GameModel:
        """Store new game (the ID is part of the model) and return the stored data."""
        ...

    def update_game(self, game_id: str, game: GameModel) -> GameModel | None:
        """Replace an existing record."""
        ...

    def delete_game(self, game_id: str) -> GameModel | None:
        """Remove a game's record."""
        ...

    def list_game_ids(self) -> list[str]:
        """IDs of all stored games."""
        ...

    def lock(self, game_id: str) -> AbstractContextManager[None]:
        """Exclusive, blocking lock for one game ID. Hold it across load -> mutate -> update."""
        ...
