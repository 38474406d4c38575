import logging
from typing import Callable, Dict, Iterable, List, Optional

from knowme.errors import QuestionNotFoundError

from .events import SessionEvent
from .game_session import GameSession
from .outcome import Outcome
from .question import Question
from .records import UserRef
from .repository import SessionRepository
from .scoring import UserResult

EventDispatcher = Callable[[str, List[SessionEvent]], None]


class SessionService:
    """Command surface over game sessions.

    Each command loads the aggregate, applies one operation and, only if
    that operation succeeded, saves the session and hands the events it
    raised to ``dispatcher``. Failed commands leave storage untouched.
    Callers are expected to serialise commands per session; the repository
    rejects a save that lost a race with ``ConcurrentUpdateError``.
    """

    def __init__(self, repository: SessionRepository,
                 dispatcher: Optional[EventDispatcher] = None,
                 logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.dispatcher = dispatcher
        self.logger = logger or logging.getLogger('knowme')

    def create_session(self, name: str, creator: UserRef) -> 'Outcome[GameSession]':
        outcome = GameSession.create(name, creator)
        if not outcome.is_success:
            self._log_rejected('create', None, outcome)
            return outcome
        session = outcome.value
        self.repository.add(session)
        self.logger.info(f"[create] session={session.id} creator={creator.id}")
        self._publish(session)
        return outcome

    def get_session(self, session_id: str) -> GameSession:
        return self.repository.get(session_id)

    def add_player(self, session_id: str, user: UserRef) -> 'Outcome[GameSession]':
        session = self.repository.get(session_id)
        return self._commit('join', session, session.add_player(user))

    def create_question(self, session_id: str, text: str, is_multiple_answer: bool,
                        variants: Dict[str, str], creator: UserRef) -> 'Outcome[Question]':
        session = self.repository.get(session_id)
        outcome = Question.create(text, is_multiple_answer, variants, creator, session)
        if not outcome.is_success:
            self._log_rejected('question', session.id, outcome)
            return outcome
        session.add_question(outcome.value)
        self._commit('question', session, Outcome.success(session))
        return outcome

    def start_game(self, session_id: str) -> 'Outcome[GameSession]':
        session = self.repository.get(session_id)
        return self._commit('start', session, session.start_game())

    def record_choice(self, session_id: str, user: UserRef,
                      selected_variant_ids: Iterable[str]) -> 'Outcome[GameSession]':
        session = self.repository.get(session_id)
        return self._commit('choice', session, session.record_choice(user, selected_variant_ids))

    def record_guess(self, session_id: str, guessing_user: UserRef, choice_user: UserRef,
                     selected_variant_ids: Iterable[str]) -> 'Outcome[GameSession]':
        session = self.repository.get(session_id)
        outcome = session.record_guess(guessing_user, choice_user, selected_variant_ids)
        return self._commit('guess', session, outcome)

    def get_results(self, session_id: str, question_id: str) -> 'Outcome[List[UserResult]]':
        session = self.repository.get(session_id)
        outcome = session.get_results(question_id)
        if outcome is None:
            raise QuestionNotFoundError(session_id, question_id)
        return outcome

    def _commit(self, action: str, session: GameSession, outcome: Outcome) -> Outcome:
        if not outcome.is_success:
            self._log_rejected(action, session.id, outcome)
            return outcome
        self.repository.save(session)
        self.logger.info(
            f"[{action}] session={session.id} status={session.status.value} "
            f"current_question={session.current_question_id} version={session.version}"
        )
        self._publish(session)
        return outcome

    def _log_rejected(self, action: str, session_id: Optional[str], outcome: Outcome) -> None:
        codes = ','.join(code.value for code in outcome.codes)
        self.logger.info(f"[{action}-rejected] session={session_id} errors={codes}")

    def _publish(self, session: GameSession) -> None:
        pending = session.collect_events()
        if pending and self.dispatcher is not None:
            self.dispatcher(session.id, pending)
