from __future__ import annotations


class GameError(ValueError):
    """Base class for errors raised by the game engines.

    Subclasses `ValueError` so callers that only care about "bad input" can keep
    catching that; the API layer maps the concrete subclasses to status codes.
    """


class GameNotStarted(GameError):
    """The operation needs an active session that does not exist (or already ended)."""

    def __init__(self, message: str = "game not started or already finished") -> None:
        super().__init__(message)


class InvalidTrialIndex(GameError):
    def __init__(self, index: int, *, first: int, last: int) -> None:
        self.index = index
        super().__init__(f"trial index {index} out of range ({first}..{last})")


class InvalidChoice(GameError):
    def __init__(self, field: str, value: object, allowed: object) -> None:
        self.field = field
        self.value = value
        super().__init__(f"invalid {field} {value!r} (allowed: {allowed})")


class PersistenceFailure(RuntimeError):
    """Wraps an error raised by the result store.

    Not a `GameError`: the submitted answer was fine, storing it was not.
    """
