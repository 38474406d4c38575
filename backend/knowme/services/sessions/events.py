"""Domain events raised by a game session.

The aggregate only queues them in ``GameSession.pending_events``; the
calling layer drains the queue after a successful save and decides where
they go (see ``knowme.socketio_events.broadcast_session_events``).
"""

from dataclasses import dataclass, field
from typing import Any, Dict

PLAYER_JOINED = 'player_joined'
QUESTION_ADDED = 'question_added'
GAME_STARTED = 'game_started'
CHOICE_RECORDED = 'choice_recorded'
GUESS_RECORDED = 'guess_recorded'
QUESTION_ADVANCED = 'question_advanced'
GAME_ENDED = 'game_ended'


@dataclass(frozen=True)
class SessionEvent:
    name: str
    session_id: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        return {'event': self.name, 'session_id': self.session_id, **self.payload}
