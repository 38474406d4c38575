"""Flask-SQLAlchemy storage for game session aggregates.

Sessions are append-only below the root row (players, questions, choices
and guesses are never edited or removed), so saving a session means
inserting the child rows that are not stored yet and updating the root
row. The root row carries the optimistic-locking version.
"""

import json

from sqlalchemy.orm.exc import StaleDataError

from knowme import db
from knowme.errors import ConcurrentUpdateError, SessionIntegrityError, SessionNotFoundError
from knowme.models import (
    ChoiceRecord,
    GameSessionRecord,
    GuessRecord,
    QuestionRecord,
    SessionPlayer,
    VariantRecord,
)

from .game_session import GameSession
from .question import Question
from .records import QuestionUserChoice, QuestionUserGuess, QuestionVariant, utcnow
from .repository import SessionRepository
from .status import SessionStatus


def _dump_ids(ids) -> str:
    return json.dumps(sorted(ids))


def _load_ids(row) -> frozenset:
    try:
        ids = json.loads(row.selected_variant_ids)
    except (TypeError, ValueError):
        ids = None
    if not isinstance(ids, list) or not ids:
        raise SessionIntegrityError(
            f"{row.__tablename__} row {row.id} has unreadable selected_variant_ids "
            f"{row.selected_variant_ids!r}"
        )
    return frozenset(ids)


def _to_domain(record: GameSessionRecord) -> GameSession:
    questions = []
    for q in record.questions:
        questions.append(Question(
            id=q.id,
            session_id=record.id,
            text=q.text,
            is_multiple_answer=q.is_multiple_answer,
            created_by_user_id=q.created_by_user_id,
            created_at=q.created_at,
            sequence_number=q.sequence_number,
            variants=[QuestionVariant(id=v.id, label=v.label, text=v.text) for v in q.variants],
            choices=[
                QuestionUserChoice(user_id=c.user_id, selected_variant_ids=_load_ids(c))
                for c in q.choices
            ],
            guesses=[
                QuestionUserGuess(
                    guessing_user_id=g.guessing_user_id,
                    choice_user_id=g.choice_user_id,
                    selected_variant_ids=_load_ids(g),
                )
                for g in q.guesses
            ],
        ))
    return GameSession(
        id=record.id,
        name=record.name,
        created_by_user_id=record.created_by_user_id,
        created_at=record.created_at,
        players=[p.user_id for p in record.players],
        questions=questions,
        current_question_id=record.current_question_id,
        status=SessionStatus(record.status),
        version=record.version,
    )


def _sync_question(qrec: QuestionRecord, question: Question) -> None:
    stored_choices = {c.user_id for c in qrec.choices}
    for choice in question.choices:
        if choice.user_id not in stored_choices:
            qrec.choices.append(ChoiceRecord(
                user_id=choice.user_id,
                selected_variant_ids=_dump_ids(choice.selected_variant_ids),
            ))
    stored_guesses = {(g.guessing_user_id, g.choice_user_id) for g in qrec.guesses}
    for guess in question.guesses:
        if (guess.guessing_user_id, guess.choice_user_id) not in stored_guesses:
            qrec.guesses.append(GuessRecord(
                guessing_user_id=guess.guessing_user_id,
                choice_user_id=guess.choice_user_id,
                selected_variant_ids=_dump_ids(guess.selected_variant_ids),
            ))


def _sync(record: GameSessionRecord, session: GameSession) -> None:
    record.name = session.name
    record.status = session.status.value
    record.current_question_id = session.current_question_id
    # always dirty the root row so the version check runs
    record.updated_at = utcnow()

    stored_players = {p.user_id for p in record.players}
    for position, user_id in enumerate(session.players):
        if user_id not in stored_players:
            record.players.append(SessionPlayer(user_id=user_id, position=position))

    stored_questions = {q.id: q for q in record.questions}
    for question in session.questions:
        qrec = stored_questions.get(question.id)
        if qrec is None:
            qrec = QuestionRecord(
                id=question.id,
                text=question.text,
                is_multiple_answer=question.is_multiple_answer,
                created_by_user_id=question.created_by_user_id,
                created_at=question.created_at,
                sequence_number=question.sequence_number,
            )
            for position, variant in enumerate(question.variants):
                qrec.variants.append(VariantRecord(
                    id=variant.id, label=variant.label, text=variant.text, position=position))
            record.questions.append(qrec)
        _sync_question(qrec, question)


class SqlAlchemySessionRepository(SessionRepository):

    def get(self, session_id: str) -> GameSession:
        record = db.session.get(GameSessionRecord, session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        return _to_domain(record)

    def add(self, session: GameSession) -> None:
        record = GameSessionRecord(
            id=session.id,
            created_at=session.created_at,
            created_by_user_id=session.created_by_user_id,
        )
        _sync(record, session)
        db.session.add(record)
        db.session.commit()
        session.version = record.version

    def save(self, session: GameSession) -> None:
        record = db.session.get(GameSessionRecord, session.id)
        if record is None:
            raise SessionNotFoundError(session.id)
        if record.version != session.version:
            raise ConcurrentUpdateError(session.id, session.version, record.version)
        _sync(record, session)
        try:
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            raise ConcurrentUpdateError(session.id, session.version, None)
        session.version = record.version
