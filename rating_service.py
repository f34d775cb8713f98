# rating_service.py
"""
Rating service for player strength and the end-of-session rating update.

A player's strength ("score") is the plain sum of their rolling history of
per-session ratings, at most RATING_WINDOW entries long. It is the only
basis for sorting and balancing in the scheduler.

At session close each player who played gets one new rating on a 0-5 scale:
    ((total_points / games_played) / games_per_match) * 5
which is appended to the history, dropping the oldest entry past the window.
"""

import logging
import math
from typing import Iterable, Protocol

from app_types import Gender, PlayerId, Schedule
from constants import MAX_SESSION_RATING, RATING_DECIMALS, RATING_WINDOW
from standings_service import tally_results

logger = logging.getLogger("app.rating_service")


class PlayerLike(Protocol):
    """Protocol for objects with player-like attributes."""

    id: PlayerId
    name: str
    gender: Gender
    previous_ratios: list[float]


def score(player: PlayerLike | None) -> float:
    """Sum of the player's rolling ratings; 0 for a missing player or history."""
    if player is None or not player.previous_ratios:
        return 0.0
    return float(sum(player.previous_ratios))


def compute_session_rating(
    total_points: int, games_played: int, games_per_match: int
) -> float:
    """Compute one session's rating on the 0-5 scale.

    Args:
        total_points: Points the player collected in finished games
        games_played: Number of finished games the player appeared in
        games_per_match: Session-wide games per match (5, 7 or 11)

    Returns:
        Rating clamped to [0, 5] and rounded to 3 decimals. Any non-finite
        intermediate result counts as 0.
    """
    try:
        rating = ((total_points / games_played) / games_per_match) * MAX_SESSION_RATING
    except ZeroDivisionError:
        rating = 0.0

    if not math.isfinite(rating):
        rating = 0.0

    rating = max(0.0, min(MAX_SESSION_RATING, rating))
    return round(rating, RATING_DECIMALS)


def push_rating(previous_ratios: list[float], rating: float) -> list[float]:
    """Appends a rating to the history in place, keeping the newest RATING_WINDOW."""
    previous_ratios.append(rating)
    while len(previous_ratios) > RATING_WINDOW:
        previous_ratios.pop(0)
    return previous_ratios


def finalize_session(
    schedule: Schedule,
    roster: dict[PlayerId, PlayerLike],
    selected_ids: Iterable[PlayerId],
    games_per_match: int,
) -> dict[PlayerId, float]:
    """Fold this session's finished games into each selected player's history.

    Players with no finished game this session are left untouched.

    Args:
        schedule: The session's final schedule
        roster: All known players by id
        selected_ids: Players taking part in the session
        games_per_match: Session-wide games per match

    Returns:
        Mapping of updated player ids to the rating appended for them.
    """
    points, played = tally_results(schedule)
    new_ratings: dict[PlayerId, float] = {}

    for player_id in selected_ids:
        games_played = played.get(player_id, 0)
        if games_played < 1:
            continue

        player = roster[player_id]
        rating = compute_session_rating(
            points.get(player_id, 0), games_played, games_per_match
        )
        push_rating(player.previous_ratios, rating)
        new_ratings[player_id] = rating

    logger.info(f"Finalized session: updated ratings for {len(new_ratings)} player(s)")
    return new_ratings
