"""Session engine: the room state machine.

Every public method is one synchronous transition over a single room. The
room's lock is held for the whole read-check-mutate sequence, all checks run
before the first mutation, and nothing is emitted from here: each call
returns an ``Outcome`` whose notices the transport delivers afterwards.

    lobby -> question -> reveal -> question -> ... -> reveal -> ended
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from quizroom.models import ENDED, LOBBY, QUESTION, REVEAL, AnswerSheet, Player, Room
from .errors import (
    DuplicateAnswer,
    GameAlreadyStarted,
    InvalidAnswer,
    InvalidState,
    NoQuestionsLoaded,
    NotHost,
    RoomNotFound,
    UnknownPlayer,
)
from .registry import RoomRegistry
from .sanitize import sanitize_name, sanitize_questions
from .scoring import rebuild_leaderboard, score_current_question

logger = logging.getLogger(__name__)

MAX_CHOICE_DIGITS = 3


@dataclass(frozen=True)
class Notice:
    """One broadcast instruction: deliver ``event`` to a room or a single identity."""
    event: str
    payload: Any
    room: Optional[str] = None
    sid: Optional[str] = None


@dataclass
class Outcome:
    result: Dict[str, Any] = field(default_factory=dict)
    notices: List[Notice] = field(default_factory=list)


def _coerce_choice(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        digits = value.strip()
        # Option indexes are tiny; anything longer cannot be valid
        if digits.isdecimal() and len(digits) <= MAX_CHOICE_DIGITS:
            return int(digits)
    return None


class SessionEngine:
    def __init__(self, registry: RoomRegistry, clock: Callable[[], float] = time.monotonic,
                 max_questions: int = 50, default_points: int = 1000,
                 default_time_limit: int = 20, leaderboard_size: int = 10):
        self.registry = registry
        self.clock = clock
        self.max_questions = max_questions
        self.default_points = default_points
        self.default_time_limit = default_time_limit
        self.leaderboard_size = leaderboard_size

    # ---- notices ----

    def _room_update(self, room: Room) -> Notice:
        return Notice('room:update', room.to_public(self.leaderboard_size), room=room.code)

    def _roster(self, room: Room) -> Notice:
        return Notice('lobby:players', room.roster(), room=room.code)

    def _leaderboard(self, room: Room):
        return [e.to_dict() for e in room.leaderboard]

    # ---- helpers ----

    def _require_host(self, room: Room, identity) -> None:
        if not room.is_host(identity):
            raise NotHost()

    def _activate(self, room: Room, index: int) -> None:
        room.current_index = index
        room.state = QUESTION
        room.question_started_at = self.clock()
        room.answer_sheets[index] = AnswerSheet()
        logger.info(f"[question] room={room.code} index={index} total={len(room.questions)}")

    def _end(self, room: Room) -> List[Notice]:
        room.state = ENDED
        rebuild_leaderboard(room)
        logger.info(f"[end] room={room.code} index={room.current_index} players={len(room.players)}")
        return [
            Notice('game:ended', self._leaderboard(room), room=room.code),
            self._room_update(room),
        ]

    def _depart(self, room: Room, identity) -> List[Notice]:
        notices: List[Notice] = []
        with room.lock:
            if room.players.pop(identity, None) is not None:
                logger.info(f"[player-leave] room={room.code} player={identity}")
                notices.append(self._roster(room))
            if room.is_host(identity):
                room.host_id = None
                logger.info(f"[host-leave] room={room.code} state={room.state}")
                if room.state != ENDED:
                    notices.extend(self._end(room))
            self.registry.unbind(identity, room.code)
            evict = room.state == ENDED and room.is_empty
        if evict:
            self.registry.remove(room.code)
        return notices

    def _leave_previous(self, identity, previous: Optional[str], code: str) -> List[Notice]:
        """Depart ``previous`` once ``identity`` is already bound to ``code``."""
        if previous is None or previous == code:
            return []
        try:
            room = self.registry.get(previous)
        except RoomNotFound:
            return []
        return self._depart(room, identity)

    # ---- operations ----

    def create_room(self, host_id) -> Outcome:
        previous = self.registry.room_of(host_id) if host_id is not None else None
        room = self.registry.create_room(host_id)
        with room.lock:
            update = self._room_update(room)
            result = {'code': room.code, 'room': room.to_public(self.leaderboard_size)}
        notices = self._leave_previous(host_id, previous, room.code)
        notices.append(update)
        return Outcome(result, notices)

    def load_questions(self, code, host_id, payload) -> Outcome:
        room = self.registry.get(code)
        with room.lock:
            self._require_host(room, host_id)
            if room.state != LOBBY:
                raise InvalidState('Questions can only be loaded in the lobby')
            questions, skipped = sanitize_questions(
                payload,
                limit=self.max_questions,
                default_points=self.default_points,
                default_time_limit=self.default_time_limit,
            )
            room.questions = questions
            logger.info(f"[questions-load] room={room.code} count={len(questions)} skipped={skipped}")
            return Outcome({'count': len(questions), 'skipped': skipped}, [self._room_update(room)])

    def join(self, code, identity, name) -> Outcome:
        room = self.registry.get(code)
        with room.lock:
            if room.state != LOBBY:
                raise GameAlreadyStarted()
            name = sanitize_name(name)
            player = room.players.get(identity)
            if player is None:
                room.players[identity] = Player(identity=identity, name=name, join_seq=room.next_join_seq())
            else:
                player.name = name
            previous = self.registry.bind(identity, room.code)
            logger.info(f"[player-join] room={room.code} player={identity} players={len(room.players)}")
            roster = self._roster(room)
            result = {'code': room.code, 'room': room.to_public(self.leaderboard_size)}
        # The previous room is left only after the join has succeeded
        notices = self._leave_previous(identity, previous, room.code)
        notices.append(roster)
        return Outcome(result, notices)

    def start(self, code, host_id) -> Outcome:
        room = self.registry.get(code)
        with room.lock:
            self._require_host(room, host_id)
            if room.state != LOBBY:
                raise InvalidState('Game is not in the lobby')
            if not room.questions:
                raise NoQuestionsLoaded()
            self._activate(room, 0)
            return Outcome({}, [
                Notice('game:question', room.present_question(), room=room.code),
                self._room_update(room),
            ])

    def submit_answer(self, code, identity, index) -> Outcome:
        room = self.registry.get(code)
        with room.lock:
            if room.state != QUESTION:
                raise InvalidState('Not accepting answers right now')
            if identity not in room.players:
                raise UnknownPlayer()
            sheet = room.current_sheet
            if identity in sheet:
                raise DuplicateAnswer()
            choice = _coerce_choice(index)
            if choice is None or not 0 <= choice < len(room.current_question.options):
                raise InvalidAnswer()
            elapsed = max(0.0, self.clock() - room.question_started_at)
            sheet.add(identity, choice, elapsed)
            notices = []
            if room.host_id is not None:
                notices.append(Notice(
                    'host:answersCount',
                    {'count': len(sheet), 'players': len(room.players)},
                    sid=room.host_id,
                ))
            return Outcome({'elapsed': round(elapsed, 3)}, notices)

    def reveal(self, code, host_id) -> Outcome:
        room = self.registry.get(code)
        with room.lock:
            self._require_host(room, host_id)
            if room.state != QUESTION:
                raise InvalidState('No live question to reveal')
            room.state = REVEAL
            awarded = score_current_question(room)
            correct_index = room.current_question.correct_index
            return Outcome({'correctIndex': correct_index, 'awarded': len(awarded)}, [
                Notice('game:reveal', {
                    'correctIndex': correct_index,
                    'leaderboard': self._leaderboard(room),
                }, room=room.code),
                self._room_update(room),
            ])

    def next(self, code, host_id) -> Outcome:
        room = self.registry.get(code)
        with room.lock:
            self._require_host(room, host_id)
            if room.state != REVEAL:
                raise InvalidState('Reveal the current question first')
            if room.current_index + 1 >= len(room.questions):
                return Outcome({'ended': True}, self._end(room))
            self._activate(room, room.current_index + 1)
            return Outcome({'ended': False}, [
                Notice('game:question', room.present_question(), room=room.code),
                self._room_update(room),
            ])

    def leave(self, code, identity) -> Outcome:
        room = self.registry.get(code)
        with room.lock:
            member = identity in room.players or room.is_host(identity)
        if not member:
            return Outcome({'left': False})
        return Outcome({'left': True}, self._depart(room, identity))

    def disconnect(self, identity) -> Outcome:
        code = self.registry.room_of(identity)
        if code is None:
            return Outcome()
        try:
            room = self.registry.get(code)
        except RoomNotFound:
            self.registry.unbind(identity, code)
            return Outcome()
        return Outcome({'code': room.code}, self._depart(room, identity))

    def public_state(self, code) -> Dict[str, Any]:
        room = self.registry.get(code)
        with room.lock:
            return room.to_public(self.leaderboard_size)

    def leaderboard(self, code) -> List[Dict[str, Any]]:
        room = self.registry.get(code)
        with room.lock:
            return self._leaderboard(room)
