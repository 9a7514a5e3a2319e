"""
Implementation of (Game)Repository using one JSON file per game.

Writes go to a temporary file in the same directory, which then replaces the canonical file in one step (os.replace).
A reader therefore sees either the old record or the new one, never a partial write.
New records are hard-linked into place instead (os.link), which fails rather than overwrite an existing game.
"""

import logging
import os
import tempfile
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Optional

from src.core.exceptions import RepositoryError
from src.core.models import GameModel
from src.db.codec import decode_game_json, encode_game_json
from src.db.locks import DEFAULT_LOCKS, GameLocks

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"


class FileGameRepository:
    """Data stored as <data_dir>/<game_id>.json"""

    def __init__(self, data_dir: str | Path, locks: Optional[GameLocks] = None) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.locks = locks or DEFAULT_LOCKS

    def get_game(self, game_id: str) -> GameModel | None:
        path = self._path_for(game_id)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        return decode_game_json(data)

    def id_exists(self, game_id: str) -> bool:
        return self._path_for(game_id).is_file()

    def create_game(self, game: GameModel) -> GameModel:
        """Store a new game. Never replaces an existing record, even when two creators race for the same id."""
        self._write(game, overwrite=False)
        logger.debug("Created game record %s", game.id)
        return game

    def update_game(self, game_id: str, game: GameModel) -> GameModel | None:
        if not self.id_exists(game_id):
            return None
        self._write(game, overwrite=True)
        logger.debug("Updated game record %s (round %s)", game_id, game.round)
        return game

    def delete_game(self, game_id: str) -> GameModel | None:
        game = self.get_game(game_id)
        if game is None:
            return None
        self._path_for(game_id).unlink(missing_ok=True)
        logger.debug("Deleted game record %s", game_id)
        return game

    def list_game_ids(self) -> list[str]:
        return sorted(path.stem for path in self.data_dir.glob(f"*{RECORD_SUFFIX}"))

    def lock(self, game_id: str) -> AbstractContextManager[None]:
        return self.locks.hold(game_id)

    def _path_for(self, game_id: str) -> Path:
        # ids end up in file names: keep them inside data_dir
        if not game_id or Path(game_id).name != game_id or game_id.startswith("."):
            raise RepositoryError(f"Invalid game id for file storage: {game_id!r}")
        return self.data_dir / f"{game_id}{RECORD_SUFFIX}"

    def _write(self, game: GameModel, overwrite: bool) -> None:
        path = self._path_for(game.id)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{game.id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(encode_game_json(game))
                tmp.flush()
                os.fsync(tmp.fileno())
            if overwrite:
                os.replace(tmp_name, path)
                return
            # a hard link to the final name fails if that name is already taken
            try:
                os.link(tmp_name, path)
            except FileExistsError as exc:
                raise RepositoryError(f"Game with id {game.id!r} already exists") from exc
        finally:
            Path(tmp_name).unlink(missing_ok=True)
