from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from quizroom import socketio, get_engine
from quizroom.services.quiz import SessionError
from quizroom.services.quiz.sanitize import normalize_code
from typing import Any, Dict, Iterable, Optional, Tuple


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _channel(code: str) -> str:
    return f"room:{code}"


def _deliver(notices: Iterable) -> None:
    """Emit engine notices: room-wide to the room channel, otherwise to one sid."""
    namespace = request.namespace
    for notice in notices:
        to = _channel(notice.room) if notice.room else notice.sid
        socketio.emit(notice.event, notice.payload, to=to, namespace=namespace)


def _call(event: str, operation, *args) -> Tuple[Optional[Any], Dict[str, Any]]:
    """Run one engine operation; return (outcome, ack) or (None, error ack)."""
    try:
        outcome = operation(*args)
    except SessionError as exc:
        current_app.logger.info(f"[reject] event={event} sid={_get_sid()} kind={exc.kind}")
        return None, exc.to_dict()
    ack = {'ok': True}
    ack.update(outcome.result)
    return outcome, ack


def _switch_channel(previous: Optional[str], code: str) -> None:
    if previous and previous != code:
        leave_room(_channel(previous))
    join_room(_channel(code))


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws', 'sid': _get_sid()})


def handle_disconnect(reason=None):
    sid = _get_sid()
    outcome = get_engine().disconnect(sid)
    if outcome.notices:
        current_app.logger.info(f"[disconnect] sid={sid} room={outcome.result.get('code')}")
    _deliver(outcome.notices)


def handle_ping(data=None):
    emit('pong', data or {})


def handle_create_room(data=None):
    engine = get_engine()
    sid = _get_sid()
    previous = engine.registry.room_of(sid)
    outcome, ack = _call('host:createRoom', engine.create_room, sid)
    if outcome:
        _switch_channel(previous, outcome.result['code'])
        _deliver(outcome.notices)
    return ack


def handle_load_questions(data=None):
    data = _payload(data)
    outcome, ack = _call(
        'host:loadQuestions', get_engine().load_questions,
        normalize_code(data.get('code')), _get_sid(), data.get('questions'),
    )
    if outcome:
        _deliver(outcome.notices)
    return ack


def handle_player_join(data=None):
    data = _payload(data)
    engine = get_engine()
    sid = _get_sid()
    previous = engine.registry.room_of(sid)
    outcome, ack = _call(
        'player:join', engine.join,
        normalize_code(data.get('code')), sid, data.get('name'),
    )
    if outcome:
        _switch_channel(previous, outcome.result['code'])
        _deliver(outcome.notices)
    return ack


def handle_start(data=None):
    data = _payload(data)
    outcome, ack = _call('host:start', get_engine().start, normalize_code(data.get('code')), _get_sid())
    if outcome:
        _deliver(outcome.notices)
    return ack


def handle_reveal(data=None):
    data = _payload(data)
    outcome, ack = _call('host:reveal', get_engine().reveal, normalize_code(data.get('code')), _get_sid())
    if outcome:
        _deliver(outcome.notices)
    return ack


def handle_next(data=None):
    data = _payload(data)
    outcome, ack = _call('host:next', get_engine().next, normalize_code(data.get('code')), _get_sid())
    if outcome:
        _deliver(outcome.notices)
    return ack


def handle_player_answer(data=None):
    data = _payload(data)
    outcome, ack = _call(
        'player:answer', get_engine().submit_answer,
        normalize_code(data.get('code')), _get_sid(), data.get('index'),
    )
    if outcome:
        _deliver(outcome.notices)
    return ack


def handle_leave(data=None):
    data = _payload(data)
    code = normalize_code(data.get('code'))
    outcome, ack = _call('room:leave', get_engine().leave, code, _get_sid())
    if outcome:
        leave_room(_channel(code))
        _deliver(outcome.notices)
    return ack


_HANDLERS = (
    ('connect', handle_connect),
    ('disconnect', handle_disconnect),
    ('ping', handle_ping),
    ('host:createRoom', handle_create_room),
    ('host:loadQuestions', handle_load_questions),
    ('host:start', handle_start),
    ('host:reveal', handle_reveal),
    ('host:next', handle_next),
    ('player:join', handle_player_join),
    ('player:answer', handle_player_answer),
    ('room:leave', handle_leave),
)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in _HANDLERS:
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for event, handler in _HANDLERS:
            socketio.on_event(event, handler, namespace='/')
