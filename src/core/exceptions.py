"""
Custom exceptions used across layers.

Three tiers:
    - InvalidRequestError: the request itself is malformed (nothing was attempted)
    - GameStateError / RepositoryError: the request is well-formed but not allowed right now
    - GameInvariantError: something that "cannot happen" happened. NOT a GameError on purpose, so callers handling user mistakes do not swallow it.
"""


class GameError(Exception):
    """Top level for all recoverable errors raised towards the caller."""


# --- VALIDATION ---
class InvalidRequestError(GameError):
    """Malformed or out-of-range request fields."""


# --- TRANSITIONS / BUSINESS RULES ---
class GameStateError(GameError):
    """Game is not in the expected status or phase for the requested action."""


class GameFullError(GameStateError):
    """All seats are taken."""


class NotYourTurnError(GameStateError):
    """Player attempted to roll out of turn."""


class NotGameCreatorError(GameStateError):
    """Only the creator may start the game."""


class PlayerEliminatedError(GameStateError):
    """Eliminated players can no longer roll."""


class PlayerNotFoundError(GameStateError):
    """No seat with the given player id."""


class RepositoryError(GameError):
    """Persistence layer could not fulfill the request."""


class GameNotFoundError(RepositoryError):
    """No record with the given game id."""


# --- INVARIANT VIOLATIONS ---
class GameInvariantError(Exception):
    """Logic or environment fault. Aborts the operation without persisting."""


class DealingImbalanceError(GameInvariantError):
    pass


class MissingWinnerHorseError(GameInvariantError):
    pass


class NoActivePlayersError(GameInvariantError):
    pass


class ScratchAssignmentExhaustedError(GameInvariantError):
    pass


class LockUnavailableError(GameInvariantError):
    pass


class IdGenerationError(GameInvariantError):
    pass


class CorruptRecordError(GameInvariantError):
    """Persisted record does not match the expected schema."""
