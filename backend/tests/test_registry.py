import random
import re

import pytest

from quizroom.models import LOBBY
from quizroom.services.quiz import RoomNotFound, RoomRegistry


def test_codes_are_uppercase_alphanumeric(registry):
    for _ in range(25):
        code = registry.create_room('host').code
        assert re.fullmatch(r'[A-Z0-9]{6}', code)


def test_new_room_state(registry):
    room = registry.create_room('host')
    assert room.state == LOBBY
    assert room.current_index == -1
    assert room.players == {}
    assert registry.room_of('host') == room.code


def test_code_collisions_are_retried():
    # One-character codes: filling the whole space forces repeated collisions
    registry = RoomRegistry(code_length=1, rng=random.Random(7))
    codes = {registry.create_room(f'h{i}').code for i in range(36)}
    assert len(codes) == 36
    assert len(registry) == 36


def test_get_normalizes_code(registry):
    room = registry.create_room('host')
    assert registry.get(f'  {room.code.lower()} ') is room


def test_get_missing_room(registry):
    with pytest.raises(RoomNotFound):
        registry.get('ZZZZZZ')


def test_remove_drops_bindings(registry):
    room = registry.create_room('host')
    registry.bind('player', room.code)
    registry.remove(room.code)
    assert room.code not in registry
    assert registry.room_of('host') is None
    assert registry.room_of('player') is None
    # Removing twice is harmless
    registry.remove(room.code)


def test_bind_returns_previous_room(registry):
    a = registry.create_room('h1')
    b = registry.create_room('h2')
    assert registry.bind('p', a.code) is None
    assert registry.bind('p', b.code.lower()) == a.code
    assert registry.room_of('p') == b.code


def test_unbind_only_matching_room(registry):
    a = registry.create_room('h1')
    b = registry.create_room('h2')
    registry.bind('p', b.code)
    registry.unbind('p', a.code)
    assert registry.room_of('p') == b.code
    registry.unbind('p')
    assert registry.room_of('p') is None


def test_invalid_code_length():
    with pytest.raises(ValueError):
        RoomRegistry(code_length=0)


def test_code_length_is_bounded_by_lookup_length():
    with pytest.raises(ValueError):
        RoomRegistry(code_length=11)
    registry = RoomRegistry(code_length=10)
    room = registry.create_room('host')
    assert len(room.code) == 10
    assert registry.get(room.code.lower()) is room
