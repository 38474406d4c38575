import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import FrozenSet, Iterable, List

from .outcome import ErrorCode, Outcome, ValidationError

MAX_VARIANT_TEXT_LENGTH = 100


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UserRef:
    """Identity of a user as handed to us by the identity layer."""
    id: int


@dataclass(frozen=True)
class QuestionVariant:
    id: str
    label: str
    text: str

    @classmethod
    def create(cls, label, text) -> 'Outcome[QuestionVariant]':
        errors = []
        if not isinstance(label, str) or len(label) != 1:
            errors.append(ValidationError(
                ErrorCode.INVALID_VARIANT_LABEL,
                f'Variant label must be a single character, got {label!r}',
            ))
        if not isinstance(text, str) or not text.strip():
            errors.append(ValidationError(
                ErrorCode.INVALID_VARIANT_TEXT,
                f'Variant {label!r} text cannot be empty',
            ))
        elif len(text) > MAX_VARIANT_TEXT_LENGTH:
            errors.append(ValidationError(
                ErrorCode.INVALID_VARIANT_TEXT,
                f'Variant {label!r} text cannot be longer than {MAX_VARIANT_TEXT_LENGTH} characters',
            ))
        if errors:
            return Outcome.failure(errors)
        return Outcome.success(cls(id=new_id(), label=label, text=text))

    def to_dict(self):
        return {'id': self.id, 'label': self.label, 'text': self.text}


def _selection_errors(question, selected: FrozenSet[str]) -> List[ValidationError]:
    errors = []
    if not selected:
        errors.append(ValidationError(
            ErrorCode.NO_VARIANTS_SELECTED, 'At least one variant must be selected'))
    unknown = selected - question.variant_ids
    if unknown:
        errors.append(ValidationError(
            ErrorCode.UNKNOWN_VARIANT,
            'Selected variants do not belong to this question: ' + ', '.join(sorted(unknown)),
        ))
    return errors


@dataclass(frozen=True)
class QuestionUserChoice:
    user_id: int
    selected_variant_ids: FrozenSet[str]

    @classmethod
    def create(cls, user: UserRef, question, selected_variant_ids: Iterable[str],
               player_ids) -> 'Outcome[QuestionUserChoice]':
        selected = frozenset(selected_variant_ids or ())
        errors = []
        if user.id not in player_ids:
            errors.append(ValidationError(
                ErrorCode.NOT_A_PLAYER, f'User {user.id} is not a player in this session'))
        errors.extend(_selection_errors(question, selected))
        if not question.is_multiple_answer and len(selected) > 1:
            errors.append(ValidationError(
                ErrorCode.SINGLE_ANSWER_REQUIRED, 'Only one variant can be chosen for this question'))
        if errors:
            return Outcome.failure(errors)
        return Outcome.success(cls(user_id=user.id, selected_variant_ids=selected))

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'selected_variant_ids': sorted(self.selected_variant_ids),
        }


@dataclass(frozen=True)
class QuestionUserGuess:
    guessing_user_id: int
    choice_user_id: int
    selected_variant_ids: FrozenSet[str]

    @classmethod
    def create(cls, guessing_user: UserRef, choice_user: UserRef, question,
               selected_variant_ids: Iterable[str], player_ids) -> 'Outcome[QuestionUserGuess]':
        """Build a guess of ``choice_user``'s choice made by ``guessing_user``.

        Multiple variants may be guessed on a single-answer question; such
        a guess simply scores zero. The guessed user's own choice has to be
        recorded first, so the record that completes a question is always a
        guess.
        """
        selected = frozenset(selected_variant_ids or ())
        errors = []
        for user in (guessing_user, choice_user):
            if user.id not in player_ids:
                errors.append(ValidationError(
                    ErrorCode.NOT_A_PLAYER, f'User {user.id} is not a player in this session'))
        if guessing_user.id == choice_user.id:
            errors.append(ValidationError(
                ErrorCode.SELF_GUESS, 'Users cannot guess their own choice'))
        elif choice_user.id in player_ids and question.choice_for(choice_user.id) is None:
            errors.append(ValidationError(
                ErrorCode.CHOICE_MISSING,
                f'User {choice_user.id} has not made a choice for this question yet',
            ))
        errors.extend(_selection_errors(question, selected))
        if errors:
            return Outcome.failure(errors)
        return Outcome.success(cls(
            guessing_user_id=guessing_user.id,
            choice_user_id=choice_user.id,
            selected_variant_ids=selected,
        ))

    def to_dict(self):
        return {
            'guessing_user_id': self.guessing_user_id,
            'choice_user_id': self.choice_user_id,
            'selected_variant_ids': sorted(self.selected_variant_ids),
        }
