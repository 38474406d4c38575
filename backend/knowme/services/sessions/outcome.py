"""Success-or-errors result returned by every session mutation.

Business-rule violations never raise; they come back as a failed
``Outcome`` carrying every applicable ``ValidationError`` in the order
the checks ran.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar('T')


class ErrorCode(str, Enum):
    # session
    NAME_REQUIRED = 'name_required'
    NAME_TOO_LONG = 'name_too_long'
    DUPLICATE_PLAYER = 'duplicate_player'
    SESSION_NOT_JOINABLE = 'session_not_joinable'
    NOT_ENOUGH_PLAYERS = 'not_enough_players'
    NOT_ENOUGH_QUESTIONS = 'not_enough_questions'
    INVALID_STATUS = 'invalid_status'
    NOT_A_PLAYER = 'not_a_player'
    # question
    QUESTION_TEXT_REQUIRED = 'question_text_required'
    QUESTION_TEXT_TOO_LONG = 'question_text_too_long'
    TOO_FEW_VARIANTS = 'too_few_variants'
    TOO_MANY_VARIANTS = 'too_many_variants'
    INVALID_VARIANT_LABEL = 'invalid_variant_label'
    INVALID_VARIANT_TEXT = 'invalid_variant_text'
    QUESTION_NOT_ANSWERED = 'question_not_answered'
    # choices and guesses
    NO_VARIANTS_SELECTED = 'no_variants_selected'
    UNKNOWN_VARIANT = 'unknown_variant'
    SINGLE_ANSWER_REQUIRED = 'single_answer_required'
    SELF_GUESS = 'self_guess'
    CHOICE_MISSING = 'choice_missing'
    DUPLICATE_CHOICE = 'duplicate_choice'
    DUPLICATE_GUESS = 'duplicate_guess'


@dataclass(frozen=True)
class ValidationError:
    code: ErrorCode
    message: str

    def to_dict(self):
        return {'code': self.code.value, 'message': self.message}


class Outcome(Generic[T]):
    """Either a value (success) or a non-empty tuple of validation errors."""

    __slots__ = ('value', 'errors')

    def __init__(self, value: Optional[T] = None, errors: Iterable[ValidationError] = ()):
        self.value = value
        self.errors: Tuple[ValidationError, ...] = tuple(errors)

    @classmethod
    def success(cls, value: T) -> 'Outcome[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, errors: Iterable[ValidationError]) -> 'Outcome[T]':
        errors = tuple(errors)
        if not errors:
            raise ValueError('A failed outcome needs at least one error')
        return cls(errors=errors)

    @property
    def is_success(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.errors]

    @property
    def codes(self) -> List[ErrorCode]:
        return [e.code for e in self.errors]

    def __repr__(self):
        if self.is_success:
            return f'Outcome.success({self.value!r})'
        return f'Outcome.failure({list(self.errors)!r})'
