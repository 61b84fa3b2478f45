"""Turn untrusted question payloads into immutable ``Question`` values."""

import logging
import re
from typing import Any, List, Optional, Tuple

from quizroom.models import MEDIA_KINDS, MediaRef, Question

logger = logging.getLogger(__name__)

MAX_TEXT = 200
MAX_OPTION = 60
MAX_OPTIONS = 6
MIN_OPTIONS = 2
MAX_URL = 500
MAX_NAME = 20
MAX_CODE = 10

_WS = re.compile(r'\s+')


def sanitize_text(value: Any, max_len: int = 100) -> str:
    text = '' if value is None else str(value)
    return _WS.sub(' ', text)[:max_len].strip()


def sanitize_url(value: Any, max_len: int = MAX_URL) -> str:
    text = '' if value is None else str(value)
    return _WS.sub('', text)[:max_len]


def normalize_code(value: Any) -> str:
    return sanitize_text(value, MAX_CODE).upper()


def sanitize_name(value: Any) -> str:
    return sanitize_text(value, MAX_NAME) or 'Player'


def _positive_int(value, default):
    # bool is an int subclass; treat it as missing
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return value


def _pick(raw: dict, *keys):
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _media(raw) -> Optional[MediaRef]:
    if not isinstance(raw, dict):
        return None
    kind = _pick(raw, 'type', 'kind')
    if not isinstance(kind, str) or kind not in MEDIA_KINDS:
        return None
    locator = sanitize_url(_pick(raw, 'url', 'locator'))
    if not locator:
        return None
    return MediaRef(kind=kind, locator=locator)


def sanitize_question(raw, default_points=1000, default_time_limit=20):
    """Return a ``Question`` or ``None`` when the payload is unusable."""
    if not isinstance(raw, dict):
        return None
    options = raw.get('options')
    if not isinstance(options, (list, tuple)):
        return None
    options = tuple(sanitize_text(o, MAX_OPTION) for o in options[:MAX_OPTIONS])
    # Blank options reject the question; dropping them would shift correctIndex
    if len(options) < MIN_OPTIONS or not all(options):
        return None
    correct = _pick(raw, 'correctIndex', 'correct_index')
    if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(options):
        return None
    return Question(
        text=sanitize_text(raw.get('text'), MAX_TEXT),
        options=options,
        correct_index=correct,
        points=_positive_int(raw.get('points'), default_points),
        time_limit=_positive_int(_pick(raw, 'timeLimit', 'time_limit'), default_time_limit),
        media=_media(raw.get('media')),
    )


def sanitize_questions(payload, limit=50, default_points=1000,
                       default_time_limit=20) -> Tuple[Tuple[Question, ...], int]:
    """Sanitize a list of question payloads.

    Returns ``(questions, skipped)``. At most ``limit`` items are considered;
    anything past the cap is ignored and not counted as skipped.
    """
    if not isinstance(payload, (list, tuple)):
        return (), 0
    kept: List[Question] = []
    skipped = 0
    for position, raw in enumerate(payload[:limit]):
        question = sanitize_question(raw, default_points, default_time_limit)
        if question is None:
            skipped += 1
            logger.debug(f"[question-skip] position={position}")
            continue
        kept.append(question)
    return tuple(kept), skipped
