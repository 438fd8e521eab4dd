from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

from acca_games.errors import InvalidChoice, InvalidTrialIndex


@dataclass(frozen=True, slots=True)
class SubmissionContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    game_code: str
    session_id: int
    action: str
    trial_count: int


class SubmissionValidator(ABC):
    """A small, composable validation unit for an incoming answer."""

    @abstractmethod
    def validate(self, *, ctx: SubmissionContext, submission: Mapping[str, object]) -> None:
        raise NotImplementedError


def _describe(allowed: frozenset[object]) -> str:
    return ",".join(sorted(str(a) for a in allowed))


@dataclass(frozen=True, slots=True)
class TrialIndexValidator(SubmissionValidator):
    """The referenced trial must exist. `first` is 0 for indices, 1 for round/problem numbers."""

    field: str
    first: int = 0

    def validate(self, *, ctx: SubmissionContext, submission: Mapping[str, object]) -> None:
        index = submission[self.field]
        last = self.first + ctx.trial_count - 1
        if not isinstance(index, int) or isinstance(index, bool) or not self.first <= index <= last:
            raise InvalidTrialIndex(index, first=self.first, last=last)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class ChoiceValidator(SubmissionValidator):
    field: str
    allowed: frozenset[object]

    def validate(self, *, ctx: SubmissionContext, submission: Mapping[str, object]) -> None:
        value = submission[self.field]
        if value not in self.allowed:
            raise InvalidChoice(self.field, value, _describe(self.allowed))


@dataclass(frozen=True, slots=True)
class EachChoiceValidator(SubmissionValidator):
    """Every element of a sequence field must be in the vocabulary."""

    field: str
    allowed: frozenset[object]

    def validate(self, *, ctx: SubmissionContext, submission: Mapping[str, object]) -> None:
        values = submission[self.field]
        for value in values:  # type: ignore[attr-defined]
            if value not in self.allowed:
                raise InvalidChoice(self.field, value, _describe(self.allowed))


@dataclass(frozen=True, slots=True)
class ConfidenceValidator(SubmissionValidator):
    """Confidence must be within range unless the answer is an exempt choice (e.g. a timeout)."""

    low: int
    high: int
    exempt_choices: frozenset[str] = frozenset()
    field: str = "confidence"
    choice_field: str = "player_choice"

    def validate(self, *, ctx: SubmissionContext, submission: Mapping[str, object]) -> None:
        if submission.get(self.choice_field) in self.exempt_choices:
            return
        value = submission[self.field]
        if not isinstance(value, int) or isinstance(value, bool) or not self.low <= value <= self.high:
            raise InvalidChoice(self.field, value, f"{self.low}..{self.high}")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[SubmissionValidator, ...]

    def validate(self, *, ctx: SubmissionContext, submission: Mapping[str, object]) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, submission=submission)
