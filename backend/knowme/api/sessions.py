from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from knowme import db
from knowme.errors import (
    ConcurrentUpdateError,
    QuestionNotFoundError,
    SessionNotFoundError,
    UserNotFoundError,
)
from knowme.models import User
from knowme.services.sessions.commands import SessionService
from knowme.services.sessions.records import UserRef
from knowme.services.sessions.sql_repository import SqlAlchemySessionRepository
from knowme.socketio_events import broadcast_session_events


sessions = Blueprint('sessions', __name__)


class InvalidRequest(Exception):
    pass


def _service() -> SessionService:
    return SessionService(
        SqlAlchemySessionRepository(),
        dispatcher=broadcast_session_events,
        logger=current_app.logger,
    )


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _user(data: dict, key: str) -> UserRef:
    """Resolve ``data[key]`` (or the logged-in user) to a known user."""
    user_id = data.get(key)
    if user_id is None and current_user.is_authenticated:
        user_id = current_user.id
    if user_id is None:
        raise InvalidRequest(f'{key} is required')
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise InvalidRequest(f'{key} must be an integer')
    if db.session.get(User, user_id) is None:
        raise UserNotFoundError(user_id)
    return UserRef(id=user_id)


def _variant_ids(data: dict):
    selected = data.get('selected_variant_ids')
    if not isinstance(selected, list):
        raise InvalidRequest('selected_variant_ids must be a list')
    return [str(v) for v in selected]


def _respond(outcome, success_status=200):
    if not outcome.is_success:
        return jsonify({'errors': [e.to_dict() for e in outcome.errors]}), 400
    return jsonify(outcome.value.to_dict()), success_status


@sessions.errorhandler(InvalidRequest)
def _bad_request(exc):
    return jsonify({'error': str(exc)}), 400


@sessions.errorhandler(SessionNotFoundError)
@sessions.errorhandler(QuestionNotFoundError)
@sessions.errorhandler(UserNotFoundError)
def _not_found(exc):
    return jsonify({'error': str(exc)}), 404


@sessions.errorhandler(ConcurrentUpdateError)
def _conflict(exc):
    db.session.rollback()
    current_app.logger.warning(f"[conflict] session={exc.session_id} {exc}")
    return jsonify({'error': 'Session was modified by another request, reload and retry'}), 409


@sessions.route('', methods=['POST'])
def create_session():
    data = _payload()
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        raise InvalidRequest('name is required')
    creator = _user(data, 'creator_user_id')
    return _respond(_service().create_session(name, creator), 201)


@sessions.route('/<string:session_id>', methods=['GET'])
def get_session(session_id):
    return jsonify(_service().get_session(session_id).to_dict())


@sessions.route('/<string:session_id>/players', methods=['POST'])
def add_player(session_id):
    user = _user(_payload(), 'user_id')
    return _respond(_service().add_player(session_id, user))


@sessions.route('/<string:session_id>/questions', methods=['POST'])
def create_question(session_id):
    data = _payload()
    text = data.get('text')
    variants = data.get('variants')
    if not isinstance(text, str) or not text.strip():
        raise InvalidRequest('text is required')
    if not isinstance(variants, dict):
        raise InvalidRequest('variants must be an object mapping labels to texts')
    creator = _user(data, 'creator_user_id')
    outcome = _service().create_question(
        session_id, text, bool(data.get('is_multiple_answer')), variants, creator)
    return _respond(outcome, 201)


@sessions.route('/<string:session_id>/start', methods=['POST'])
def start_game(session_id):
    return _respond(_service().start_game(session_id))


@sessions.route('/<string:session_id>/choices', methods=['POST'])
def record_choice(session_id):
    data = _payload()
    user = _user(data, 'user_id')
    return _respond(_service().record_choice(session_id, user, _variant_ids(data)))


@sessions.route('/<string:session_id>/guesses', methods=['POST'])
def record_guess(session_id):
    data = _payload()
    guessing_user = _user(data, 'guessing_user_id')
    if data.get('choice_user_id') is None:
        raise InvalidRequest('choice_user_id is required')
    choice_user = _user(data, 'choice_user_id')
    outcome = _service().record_guess(session_id, guessing_user, choice_user, _variant_ids(data))
    return _respond(outcome)


@sessions.route('/<string:session_id>/questions/<string:question_id>/results', methods=['GET'])
def get_results(session_id, question_id):
    outcome = _service().get_results(session_id, question_id)
    if not outcome.is_success:
        return jsonify({'errors': [e.to_dict() for e in outcome.errors]}), 400
    return jsonify([r.to_dict() for r in outcome.value])
