"""Implementation of (Game)Repository using SQLAlchemy"""

import logging
from contextlib import contextmanager
from dataclasses import fields
from typing import Generator, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError
from src.core.models import GameModel
from src.db.codec import decode_game, encode_game
from src.db.locks import DEFAULT_LOCKS, GameLocks
from src.db.schema import DBGame

logger = logging.getLogger(__name__)

# Every GameModel field has a column of the same name on DBGame
GAME_FIELDS = [f.name for f in fields(GameModel)]


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session, locks: Optional[GameLocks] = None) -> None:
        self.db = db_session
        self.locks = locks or DEFAULT_LOCKS
        self._locked_ids: set[str] = set()

    def get_game(self, game_id: str) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def id_exists(self, game_id: str) -> bool:
        return self.db.get(DBGame, game_id) is not None

    def create_game(self, game: GameModel) -> GameModel:
        """Store new game and return the stored data. An existing record with the same id is never replaced."""
        if self.db.get(DBGame, game.id) is not None:
            raise RepositoryError(f"Game with id {game.id!r} already exists")
        game_db = DBGame()
        self._apply(game_db, game)
        self.db.add(game_db)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # another session inserted the same id in the meantime
            self.db.rollback()
            raise RepositoryError(f"Game with id {game.id!r} already exists") from exc
        self.db.refresh(game_db)
        logger.debug("Created game record %s", game.id)
        return self._to_model(game_db)

    def update_game(self, game_id: str, game: GameModel) -> GameModel | None:
        """Replace an existing record (single commit, so readers never see half of it)."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        self._apply(game_db, game)
        self.db.commit()
        self.db.refresh(game_db)
        logger.debug("Updated game record %s (round %s)", game_id, game.round)
        return self._to_model(game_db)

    def delete_game(self, game_id: str) -> GameModel | None:
        """Remove a game's record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        logger.debug("Deleted game record %s", game_id)
        return game_model

    def list_game_ids(self) -> list[str]:
        return list(self.db.scalars(select(DBGame.id).order_by(DBGame.id)))

    @contextmanager
    def lock(self, game_id: str) -> Generator[None, None, None]:
        """
        Hold the process-wide lock for this game.
        While held, rows are (re)loaded with SELECT ... FOR UPDATE where the database supports it.
        """
        with self.locks.hold(game_id):
            self._locked_ids.add(game_id)
            try:
                yield
            except Exception:
                self.db.rollback()
                raise
            else:
                # ends the transaction (and its row locks) even when nothing was written
                self.db.commit()
            finally:
                self._locked_ids.discard(game_id)

    def _fetch_game(self, game_id: str) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        if game_id in self._locked_ids:
            query = query.with_for_update().execution_options(populate_existing=True)
        return self.db.scalar(query)

    def _apply(self, game_db: DBGame, game: GameModel) -> None:
        """Copy the encoded GameModel onto the columns."""
        record = encode_game(game)
        game_db.schema_version = record["schema_version"]
        for name, value in record["game"].items():
            setattr(game_db, name, value)

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        payload = {
            "schema_version": game_db.schema_version,
            "game": {name: getattr(game_db, name) for name in GAME_FIELDS},
        }
        return decode_game(payload)
