from datetime import datetime
from typing import Dict, Iterable, List, Optional

from knowme.errors import SessionIntegrityError

from . import events
from .events import SessionEvent
from .outcome import ErrorCode, Outcome, ValidationError
from .question import Question
from .records import QuestionUserChoice, QuestionUserGuess, UserRef, new_id, utcnow
from .scoring import UserResult, total_standings
from .status import SessionStatus

MAX_NAME_LENGTH = 100
MIN_PLAYERS = 2
MIN_QUESTIONS = 2


class GameSession:
    """Aggregate root of one game: roster, questions and lifecycle.

    Status only moves Created -> Started -> Ended. While Started,
    ``current_question_id`` points at the first question (in
    ``sequence_number`` order) that is not answered yet; once none is left
    the session ends.
    """

    def __init__(self, id: str, name: str, created_by_user_id: int, created_at: datetime,
                 players: Iterable[int] = (), questions: Iterable[Question] = (),
                 current_question_id: Optional[str] = None,
                 status: SessionStatus = SessionStatus.CREATED,
                 version: Optional[int] = None):
        self.id = id
        self.name = name
        self.created_by_user_id = created_by_user_id
        self.created_at = created_at
        self.players: List[int] = list(players)
        self.questions: List[Question] = list(questions)
        self.current_question_id = current_question_id
        self.status = SessionStatus(status)
        # bumped by the repository on every save
        self.version = version
        self.pending_events: List[SessionEvent] = []

    @classmethod
    def create(cls, name: str, creator: UserRef) -> 'Outcome[GameSession]':
        errors = []
        if not isinstance(name, str):
            errors.append(ValidationError(ErrorCode.NAME_REQUIRED, 'Name is required'))
        elif len(name) > MAX_NAME_LENGTH:
            errors.append(ValidationError(
                ErrorCode.NAME_TOO_LONG,
                f'Name cannot be longer than {MAX_NAME_LENGTH} characters',
            ))
        if errors:
            return Outcome.failure(errors)

        return Outcome.success(cls(
            id=new_id(),
            name=name,
            created_by_user_id=creator.id,
            created_at=utcnow(),
            players=[creator.id],
        ))

    # ---- lookups ----

    def is_player(self, user_id) -> bool:
        return user_id in self.players

    def get_question(self, question_id) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)

    def ordered_questions(self) -> List[Question]:
        return sorted(self.questions, key=lambda q: (q.sequence_number, q.id))

    @property
    def current_question(self) -> Question:
        question = self.get_question(self.current_question_id)
        if question is None:
            raise SessionIntegrityError(
                f'Session {self.id} points at unknown question {self.current_question_id!r}'
            )
        return question

    # ---- roster and setup ----

    def add_player(self, player: UserRef) -> 'Outcome[GameSession]':
        errors = []
        if self.is_player(player.id):
            errors.append(ValidationError(ErrorCode.DUPLICATE_PLAYER, 'Cannot add duplicate player'))
        if self.status != SessionStatus.CREATED:
            errors.append(ValidationError(
                ErrorCode.SESSION_NOT_JOINABLE, 'Players cannot join after the game has started'))
        if errors:
            return Outcome.failure(errors)

        self.players.append(player.id)
        self._raise_event(events.PLAYER_JOINED, user_id=player.id)
        return Outcome.success(self)

    def add_question(self, question: Question) -> None:
        # question was validated by Question.create
        question.sequence_number = max((q.sequence_number for q in self.questions), default=0) + 1
        self.questions.append(question)
        self._raise_event(events.QUESTION_ADDED, question_id=question.id,
                          sequence_number=question.sequence_number)

    def start_game(self) -> 'Outcome[GameSession]':
        errors = []
        if self.status != SessionStatus.CREATED:
            errors.append(ValidationError(
                ErrorCode.INVALID_STATUS, f'Cannot start a game that is {self.status.value}'))
        if len(self.players) < MIN_PLAYERS:
            errors.append(ValidationError(
                ErrorCode.NOT_ENOUGH_PLAYERS, 'Cannot start game with only one player'))
        if len(self.questions) < MIN_QUESTIONS:
            errors.append(ValidationError(
                ErrorCode.NOT_ENOUGH_QUESTIONS, 'At least two questions required to start the game'))
        if errors:
            return Outcome.failure(errors)

        self.status = SessionStatus.STARTED
        self.current_question_id = self.ordered_questions()[0].id
        self._raise_event(events.GAME_STARTED, current_question_id=self.current_question_id)
        return Outcome.success(self)

    # ---- play ----

    def _require_started(self) -> List[ValidationError]:
        if self.status != SessionStatus.STARTED:
            return [ValidationError(ErrorCode.INVALID_STATUS, 'Game is not in progress')]
        return []

    def record_choice(self, user: UserRef, selected_variant_ids: Iterable[str]) -> 'Outcome[GameSession]':
        """Record ``user``'s own answer to the current question.

        Never advances the session: a question is only completed by a guess.
        """
        errors = self._require_started()
        if errors:
            return Outcome.failure(errors)

        question = self.current_question
        choice_outcome = QuestionUserChoice.create(user, question, selected_variant_ids, self.players)
        if not choice_outcome.is_success:
            return Outcome.failure(choice_outcome.errors)

        recorded = question.record_choice(choice_outcome.value)
        if not recorded.is_success:
            return Outcome.failure(recorded.errors)

        self._raise_event(events.CHOICE_RECORDED, question_id=question.id, user_id=user.id)
        return Outcome.success(self)

    def record_guess(self, guessing_user: UserRef, choice_user: UserRef,
                     selected_variant_ids: Iterable[str]) -> 'Outcome[GameSession]':
        errors = self._require_started()
        if errors:
            return Outcome.failure(errors)

        question = self.current_question
        guess_outcome = QuestionUserGuess.create(
            guessing_user, choice_user, question, selected_variant_ids, self.players)
        if not guess_outcome.is_success:
            return Outcome.failure(guess_outcome.errors)

        recorded = question.record_guess(guess_outcome.value)
        if not recorded.is_success:
            return Outcome.failure(recorded.errors)

        self._raise_event(events.GUESS_RECORDED, question_id=question.id,
                          guessing_user_id=guessing_user.id, choice_user_id=choice_user.id)
        self.advance_if_current_question_answered()
        return Outcome.success(self)

    def advance_if_current_question_answered(self) -> None:
        current = self.current_question
        if not current.is_answered(self.players):
            return

        next_question = next(
            (q for q in self.ordered_questions() if not q.is_answered(self.players)), None)
        if next_question is None:
            self.status = SessionStatus.ENDED
            self._raise_event(events.GAME_ENDED, last_question_id=current.id,
                              standings=self.get_standings())
            return

        self.current_question_id = next_question.id
        self._raise_event(events.QUESTION_ADVANCED, previous_question_id=current.id,
                          current_question_id=next_question.id)

    # ---- results ----

    def get_results(self, question_id) -> 'Optional[Outcome[List[UserResult]]]':
        """Per-user results of one question; ``None`` if no such question."""
        question = self.get_question(question_id)
        if question is None:
            return None
        return question.get_user_results(self.players)

    def get_standings(self) -> List[Dict]:
        """Leaderboard over every question answered so far."""
        per_question = []
        for question in self.ordered_questions():
            outcome = question.get_user_results(self.players)
            if outcome.is_success:
                per_question.append(outcome.value)
        return total_standings(per_question, self.players)

    # ---- events ----

    def _raise_event(self, name: str, **payload) -> None:
        self.pending_events.append(SessionEvent(name=name, session_id=self.id, payload=payload))

    def collect_events(self) -> List[SessionEvent]:
        drained, self.pending_events = self.pending_events, []
        return drained

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'created_by_user_id': self.created_by_user_id,
            'status': self.status.value,
            'players': list(self.players),
            'current_question_id': self.current_question_id,
            'questions': [q.to_dict(self.players) for q in self.ordered_questions()],
            'standings': self.get_standings(),
            'version': self.version,
        }
