import itertools
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# Room states
LOBBY = 'lobby'
QUESTION = 'question'
REVEAL = 'reveal'
ENDED = 'ended'

MEDIA_KINDS = frozenset({'image', 'audio', 'video'})


@dataclass(frozen=True)
class MediaRef:
    kind: str
    locator: str

    def to_dict(self):
        return {'type': self.kind, 'url': self.locator}


@dataclass(frozen=True)
class Question:
    text: str
    options: Tuple[str, ...]
    correct_index: int
    points: int
    time_limit: int
    media: Optional[MediaRef] = None

    def is_correct(self, chosen_index: int) -> bool:
        return chosen_index == self.correct_index

    def to_dict(self):
        return {
            'text': self.text,
            'options': list(self.options),
            'correctIndex': self.correct_index,
            'points': self.points,
            'timeLimit': self.time_limit,
            'media': self.media.to_dict() if self.media else None,
        }


@dataclass
class Player:
    identity: str
    name: str
    join_seq: int
    score: int = 0
    joined_at: float = field(default_factory=time.time)

    def to_dict(self):
        return {'name': self.name, 'score': self.score}


@dataclass(frozen=True)
class Answer:
    chosen_index: int
    elapsed: float
    seq: int


class AnswerSheet:
    """Answers for one question activation, at most one per player identity."""

    def __init__(self):
        self._answers: Dict[str, Answer] = {}

    def __contains__(self, identity):
        return identity in self._answers

    def __len__(self):
        return len(self._answers)

    def get(self, identity) -> Optional[Answer]:
        return self._answers.get(identity)

    def add(self, identity: str, chosen_index: int, elapsed: float) -> Answer:
        if identity in self._answers:
            raise KeyError(identity)
        answer = Answer(chosen_index=chosen_index, elapsed=elapsed, seq=len(self._answers))
        self._answers[identity] = answer
        return answer

    def items(self):
        return list(self._answers.items())


@dataclass(frozen=True)
class LeaderboardEntry:
    name: str
    score: int

    def to_dict(self):
        return {'name': self.name, 'score': self.score}


@dataclass
class Room:
    code: str
    host_id: Optional[str]
    state: str = LOBBY
    players: Dict[str, Player] = field(default_factory=dict)
    questions: Tuple[Question, ...] = ()
    current_index: int = -1
    question_started_at: float = 0.0
    # Question index -> answers collected while that question was live
    answer_sheets: Dict[int, AnswerSheet] = field(default_factory=dict)
    leaderboard: List[LeaderboardEntry] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)
    _join_counter: itertools.count = field(default_factory=itertools.count, repr=False, compare=False)

    def next_join_seq(self) -> int:
        return next(self._join_counter)

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def current_sheet(self) -> Optional[AnswerSheet]:
        return self.answer_sheets.get(self.current_index)

    @property
    def is_empty(self) -> bool:
        return self.host_id is None and not self.players

    def is_host(self, identity) -> bool:
        return self.host_id is not None and identity == self.host_id

    def roster(self):
        ordered = sorted(self.players.values(), key=lambda p: p.join_seq)
        return [p.to_dict() for p in ordered]

    def present_question(self):
        """Client view of the live question; never carries the correct index."""
        q = self.current_question
        if q is None:
            return None
        return {
            'index': self.current_index,
            'total': len(self.questions),
            'text': q.text,
            'options': list(q.options),
            'timeLimit': q.time_limit,
            'media': q.media.to_dict() if q.media else None,
        }

    def to_public(self, leaderboard_size: int = 10):
        return {
            'code': self.code,
            'state': self.state,
            'currentIndex': self.current_index,
            'questionsCount': len(self.questions),
            'leaderboard': [e.to_dict() for e in self.leaderboard[:leaderboard_size]],
        }
