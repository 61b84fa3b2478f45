"""Quiz domain services: room registry, question loading, scoring and the
session engine.

This package contains pure domain logic that is called by socket handlers
and HTTP routes, keeping transport concerns separated from core quiz
mechanics. Nothing in here emits events; operations hand back the
notifications for the caller to deliver.
"""

from .errors import (
    SessionError,
    RoomNotFound,
    NotHost,
    GameAlreadyStarted,
    NoQuestionsLoaded,
    DuplicateAnswer,
    InvalidState,
    UnknownPlayer,
    InvalidAnswer,
)
from .registry import RoomRegistry
from .engine import SessionEngine, Outcome, Notice

__all__ = [
    'SessionError',
    'RoomNotFound',
    'NotHost',
    'GameAlreadyStarted',
    'NoQuestionsLoaded',
    'DuplicateAnswer',
    'InvalidState',
    'UnknownPlayer',
    'InvalidAnswer',
    'RoomRegistry',
    'SessionEngine',
    'Outcome',
    'Notice',
]
