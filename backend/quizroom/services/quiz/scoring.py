import logging
from typing import Dict, List, Tuple

from quizroom.models import AnswerSheet, LeaderboardEntry, Question, Room

logger = logging.getLogger(__name__)


def rank_points(points: int, rank: int, n: int) -> int:
    """Points for the ``rank``-th fastest (0-based) of ``n`` correct answers.

    ``round(points * (n - rank) / n)`` with halves rounded up, done in
    integers so the result does not depend on float representation.
    """
    if n <= 0 or not 0 <= rank < n:
        return 0
    return (2 * points * (n - rank) + n) // (2 * n)


def award_question(question: Question, sheet: AnswerSheet) -> List[Tuple[str, int]]:
    """Return ``(identity, points)`` for every correct answer, fastest first."""
    correct = [(identity, answer) for identity, answer in sheet.items()
               if question.is_correct(answer.chosen_index)]
    correct.sort(key=lambda item: (item[1].elapsed, item[1].seq))
    n = len(correct)
    return [(identity, rank_points(question.points, rank, n))
            for rank, (identity, _) in enumerate(correct)]


def score_current_question(room: Room) -> Dict[str, int]:
    """Apply scoring for the live question and refresh the leaderboard.

    Players who left before the reveal still count toward the number of
    correct answers, but nobody is credited on their behalf.
    """
    question = room.current_question
    sheet = room.current_sheet
    awarded: Dict[str, int] = {}
    if question is None or sheet is None:
        rebuild_leaderboard(room)
        return awarded
    for identity, points in award_question(question, sheet):
        player = room.players.get(identity)
        if not player:
            continue
        player.score += points
        awarded[identity] = points
    rebuild_leaderboard(room)
    logger.info(
        f"[score] room={room.code} question={room.current_index} answers={len(sheet)} awarded={len(awarded)}"
    )
    return awarded


def rebuild_leaderboard(room: Room) -> List[LeaderboardEntry]:
    # Score descending, earliest join first on ties
    ordered = sorted(room.players.values(), key=lambda p: (-p.score, p.join_seq))
    room.leaderboard = [LeaderboardEntry(name=p.name, score=p.score) for p in ordered]
    return room.leaderboard
