class SessionError(Exception):
    """Base class for recoverable, single-operation failures.

    ``kind`` is the stable identifier sent back to the client; ``status``
    is the HTTP status used when the error surfaces through the REST API.
    """

    kind = 'SessionError'
    status = 400
    default_message = 'Session error'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'ok': False, 'error': self.kind, 'message': self.message}


class RoomNotFound(SessionError):
    kind = 'RoomNotFound'
    status = 404
    default_message = 'Room not found'


class NotHost(SessionError):
    kind = 'NotHost'
    status = 403
    default_message = 'Only the host may do that'


class GameAlreadyStarted(SessionError):
    kind = 'GameAlreadyStarted'
    status = 409
    default_message = 'Game already started'


class NoQuestionsLoaded(SessionError):
    kind = 'NoQuestionsLoaded'
    default_message = 'Load questions first'


class DuplicateAnswer(SessionError):
    kind = 'DuplicateAnswer'
    status = 409
    default_message = 'Already answered this question'

    def to_dict(self):
        payload = super().to_dict()
        payload['duplicate'] = True
        return payload


class InvalidState(SessionError):
    kind = 'InvalidState'
    status = 409
    default_message = 'Not allowed in the current room state'


class UnknownPlayer(SessionError):
    kind = 'UnknownPlayer'
    status = 403
    default_message = 'Not a player in this room'


class InvalidAnswer(SessionError):
    kind = 'InvalidAnswer'
    default_message = 'Answer is not one of the options'
