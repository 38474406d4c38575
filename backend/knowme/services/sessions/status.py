from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle of a game session. Only ever moves forward."""

    CREATED = 'created'
    STARTED = 'started'
    ENDED = 'ended'
