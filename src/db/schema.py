"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    schema_version: Mapped[int]
    name: Mapped[str]
    created_by: Mapped[str]
    created_at: Mapped[str]
    max_players: Mapped[int]
    starting_balance_cents: Mapped[int]
    standard_bet_cents: Mapped[int]
    status: Mapped[str] = mapped_column(index=True)
    round: Mapped[int]
    phase: Mapped[str]
    dealer_index: Mapped[int]
    turn_player_id: Mapped[Optional[str]]
    pot_cents: Mapped[int]
    elimination_multiplier: Mapped[int]
    winner_horse: Mapped[Optional[int]]
    winner_player_id: Mapped[Optional[str]]
    # nested parts of the aggregate, stored as JSON exactly as the codec writes them
    players: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    horses: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    scratches: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    last_roll: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    logs: Mapped[list[str]] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
