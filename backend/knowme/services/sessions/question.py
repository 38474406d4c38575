from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from .outcome import ErrorCode, Outcome, ValidationError
from .records import (
    QuestionUserChoice,
    QuestionUserGuess,
    QuestionVariant,
    UserRef,
    new_id,
    utcnow,
)
from .scoring import UserResult, score_guess
from .status import SessionStatus

MAX_QUESTION_TEXT_LENGTH = 100
MIN_VARIANTS = 2
MAX_VARIANTS = 20


class Question:
    """A question of a game session with its variants, choices and guesses.

    The question never holds a reference to its session. Operations that
    depend on the roster (``is_answered``, ``get_user_results``) take the
    session's player ids as an argument.
    """

    def __init__(self, id: str, session_id: str, text: str, is_multiple_answer: bool,
                 created_by_user_id: int, created_at: datetime,
                 variants: Sequence[QuestionVariant] = (),
                 choices: Iterable[QuestionUserChoice] = (),
                 guesses: Iterable[QuestionUserGuess] = (),
                 sequence_number: int = 0):
        self.id = id
        self.session_id = session_id
        self.text = text
        self.is_multiple_answer = is_multiple_answer
        self.created_by_user_id = created_by_user_id
        self.created_at = created_at
        self.variants: List[QuestionVariant] = list(variants)
        self.choices: List[QuestionUserChoice] = list(choices)
        self.guesses: List[QuestionUserGuess] = list(guesses)
        self.sequence_number = sequence_number

    @classmethod
    def create(cls, text: str, is_multiple_answer: bool, variants_by_label: Dict[str, str],
               created_by: UserRef, session) -> 'Outcome[Question]':
        """Validate and build a question for ``session``; does not attach it.

        All problems are collected before failing so the caller sees every
        one of them at once.
        """
        errors = []
        if session.status != SessionStatus.CREATED:
            errors.append(ValidationError(
                ErrorCode.INVALID_STATUS, 'Questions can only be added before the game starts'))
        if not session.is_player(created_by.id):
            errors.append(ValidationError(
                ErrorCode.NOT_A_PLAYER, f'User {created_by.id} is not a player in this session'))
        if not isinstance(text, str):
            errors.append(ValidationError(
                ErrorCode.QUESTION_TEXT_REQUIRED, 'Question text is required'))
        elif len(text) > MAX_QUESTION_TEXT_LENGTH:
            errors.append(ValidationError(
                ErrorCode.QUESTION_TEXT_TOO_LONG,
                f'Question text cannot be longer than {MAX_QUESTION_TEXT_LENGTH} characters',
            ))
        variants_by_label = variants_by_label or {}
        if len(variants_by_label) < MIN_VARIANTS:
            errors.append(ValidationError(
                ErrorCode.TOO_FEW_VARIANTS, 'More than one possible question answer must be added'))
        if len(variants_by_label) > MAX_VARIANTS:
            errors.append(ValidationError(
                ErrorCode.TOO_MANY_VARIANTS,
                f'No more than {MAX_VARIANTS} possible question answers can be added',
            ))

        variants = []
        for label, variant_text in variants_by_label.items():
            outcome = QuestionVariant.create(label, variant_text)
            if outcome.is_success:
                variants.append(outcome.value)
            else:
                errors.extend(outcome.errors)

        if errors:
            return Outcome.failure(errors)

        return Outcome.success(cls(
            id=new_id(),
            session_id=session.id,
            text=text,
            is_multiple_answer=bool(is_multiple_answer),
            created_by_user_id=created_by.id,
            created_at=utcnow(),
            variants=variants,
        ))

    @property
    def variant_ids(self):
        return frozenset(v.id for v in self.variants)

    def choice_for(self, user_id) -> Optional[QuestionUserChoice]:
        return next((c for c in self.choices if c.user_id == user_id), None)

    def guess_for(self, guessing_user_id, choice_user_id) -> Optional[QuestionUserGuess]:
        return next(
            (g for g in self.guesses
             if g.guessing_user_id == guessing_user_id and g.choice_user_id == choice_user_id),
            None,
        )

    def record_choice(self, choice: QuestionUserChoice) -> 'Outcome[Question]':
        if self.choice_for(choice.user_id) is not None:
            return Outcome.failure([ValidationError(
                ErrorCode.DUPLICATE_CHOICE, 'User already made choice')])
        self.choices.append(choice)
        return Outcome.success(self)

    def record_guess(self, guess: QuestionUserGuess) -> 'Outcome[Question]':
        if self.guess_for(guess.guessing_user_id, guess.choice_user_id) is not None:
            return Outcome.failure([ValidationError(
                ErrorCode.DUPLICATE_GUESS, 'User already made guess for this user')])
        self.guesses.append(guess)
        return Outcome.success(self)

    def is_answered(self, player_ids: Sequence) -> bool:
        n = len(player_ids)
        return len(self.guesses) == n * (n - 1) and len(self.choices) == n

    def get_user_results(self, player_ids: Sequence) -> 'Outcome[List[UserResult]]':
        if not self.is_answered(player_ids):
            return Outcome.failure([ValidationError(
                ErrorCode.QUESTION_NOT_ANSWERED,
                'Cannot generate results until question fully answered',
            )])

        results = []
        for player_id in player_ids:
            guess_results = [
                score_guess(g, self.choice_for(g.choice_user_id), self.is_multiple_answer)
                for g in self.guesses
                if g.guessing_user_id == player_id
            ]
            results.append(UserResult(
                user_id=player_id,
                total_score=sum(r.score for r in guess_results),
                guess_results=guess_results,
            ))
        return Outcome.success(results)

    def to_dict(self, player_ids: Optional[Sequence] = None):
        data = {
            'id': self.id,
            'session_id': self.session_id,
            'text': self.text,
            'is_multiple_answer': self.is_multiple_answer,
            'created_by_user_id': self.created_by_user_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'sequence_number': self.sequence_number,
            'variants': [v.to_dict() for v in self.variants],
            'choice_count': len(self.choices),
            'guess_count': len(self.guesses),
        }
        if player_ids is not None:
            data['answered'] = self.is_answered(player_ids)
        return data
