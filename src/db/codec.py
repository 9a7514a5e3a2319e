"""
Versioned, strict (de)serialization of a GameModel.

A stored record is an envelope: {"schema_version": 1, "game": {...}}.
Decoding rejects unknown versions, any record whose shape does not match GameModel exactly (no type coercion),
and records that break the invariants of a game (see check_record).
"""

import json
from typing import Any

from pydantic import TypeAdapter, ValidationError

from src.core.exceptions import CorruptRecordError
from src.core.models import GameModel
from src.derby.horses import HORSE_STEPS

SCHEMA_VERSION = 1

_game_adapter = TypeAdapter(GameModel)


def encode_game(model: GameModel) -> dict[str, Any]:
    """JSON compatible envelope (NOTE: horse keys become strings, decoding turns them back into ints)"""
    return {
        "schema_version": SCHEMA_VERSION,
        "game": _game_adapter.dump_python(model, mode="json"),
    }


def decode_game(payload: Any) -> GameModel:
    if not isinstance(payload, dict) or set(payload) != {"schema_version", "game"}:
        raise CorruptRecordError("Record is not a versioned game envelope")

    version = payload["schema_version"]
    if type(version) is not int or version != SCHEMA_VERSION:
        raise CorruptRecordError(
            f"Unsupported schema version: {version!r} (expected {SCHEMA_VERSION})"
        )

    try:
        model = _game_adapter.validate_python(payload["game"])
    except ValidationError as exc:
        raise CorruptRecordError(f"Invalid game record: {exc}") from exc
    check_record(model)
    return model


def check_record(model: GameModel) -> None:
    """Invariants of a stored game that its shape alone cannot express."""
    steps = {horse: state.steps for horse, state in model.horses.items()}
    if steps != HORSE_STEPS:
        raise CorruptRecordError(f"Horse table does not match the race track: {steps}")

    multiplier = model.elimination_multiplier
    if multiplier < 1 or multiplier & (multiplier - 1):
        raise CorruptRecordError(f"Elimination multiplier must be a power of two, got {multiplier}")

    if model.pot_cents < 0:
        raise CorruptRecordError(f"Negative pot: {model.pot_cents}")
    for player in model.players:
        if player.balance_cents < 0:
            raise CorruptRecordError(f"Negative balance for player {player.id!r}")


def encode_game_json(model: GameModel) -> str:
    return json.dumps(encode_game(model), indent=2)


def decode_game_json(data: str | bytes) -> GameModel:
    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CorruptRecordError(f"Record is not valid JSON: {exc}") from exc
    return decode_game(payload)
