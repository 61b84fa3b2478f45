import logging
import random
import string
import threading
from typing import Dict, List, Optional

from quizroom.models import Room
from .errors import RoomNotFound
from .sanitize import MAX_CODE, normalize_code

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


class RoomRegistry:
    """In-process store of live rooms, keyed by uppercase room code.

    Also remembers which room each connection identity last entered so a
    bare disconnect notification can be routed back to its room.
    """

    def __init__(self, code_length: int = 6, rng: Optional[random.Random] = None):
        if code_length < 1:
            raise ValueError('code_length must be positive')
        # Lookups truncate codes to MAX_CODE characters
        if code_length > MAX_CODE:
            raise ValueError(f'code_length must be at most {MAX_CODE}')
        self.code_length = code_length
        self._rng = rng or random.SystemRandom()
        self._rooms: Dict[str, Room] = {}
        self._memberships: Dict[str, str] = {}
        self._lock = threading.Lock()

    def _generate_code(self) -> str:
        """Generate a unique, short room code. Caller holds the lock."""
        while True:
            code = ''.join(self._rng.choices(CODE_ALPHABET, k=self.code_length))
            if code not in self._rooms:
                return code

    def create_room(self, host_id) -> Room:
        with self._lock:
            code = self._generate_code()
            room = Room(code=code, host_id=host_id)
            self._rooms[code] = room
            if host_id is not None:
                self._memberships[host_id] = code
        logger.info(f"[room-create] code={code} host={host_id}")
        return room

    def get(self, code) -> Room:
        key = normalize_code(code)
        with self._lock:
            room = self._rooms.get(key)
        if room is None:
            raise RoomNotFound(f"Room {key or '?'} not found")
        return room

    def remove(self, code) -> None:
        key = normalize_code(code)
        with self._lock:
            room = self._rooms.pop(key, None)
            if room is None:
                return
            for identity in [i for i, c in self._memberships.items() if c == key]:
                del self._memberships[identity]
        logger.info(f"[room-evict] code={key}")

    def bind(self, identity, code) -> Optional[str]:
        """Record ``identity`` as a member of ``code``; return the room it was in before."""
        with self._lock:
            previous = self._memberships.get(identity)
            self._memberships[identity] = normalize_code(code)
        return previous

    def unbind(self, identity, code=None) -> None:
        with self._lock:
            current = self._memberships.get(identity)
            if current is None:
                return
            if code is None or current == normalize_code(code):
                del self._memberships[identity]

    def room_of(self, identity) -> Optional[str]:
        with self._lock:
            return self._memberships.get(identity)

    def codes(self) -> List[str]:
        with self._lock:
            return list(self._rooms)

    def __contains__(self, code):
        with self._lock:
            return normalize_code(code) in self._rooms

    def __len__(self):
        with self._lock:
            return len(self._rooms)
