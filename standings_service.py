"""
Standings computed from the finished games of a schedule.

Each member of a pair earns that side's score for every finished game they
appear in; awaiting and in-play games do not count.
"""

from collections import defaultdict
from typing import Iterable, Protocol

import pandas as pd

from app_types import Gender, GameStatus, PlayerId, Schedule, StandingRow


class NamedPlayer(Protocol):
    name: str
    gender: Gender


def tally_results(
    schedule: Schedule,
) -> tuple[dict[PlayerId, int], dict[PlayerId, int]]:
    """Sum points and count games played per player over finished games.

    Returns:
        Tuple of (points, games_played) dicts keyed by player id.
    """
    points: dict[PlayerId, int] = defaultdict(int)
    played: dict[PlayerId, int] = defaultdict(int)

    for round_ in schedule:
        for game in round_.games:
            if game.status != GameStatus.FINISHED:
                continue
            for pair, side_score in ((game.pair_a, game.score_a), (game.pair_b, game.score_b)):
                for player_id in pair.members:
                    points[player_id] += int(side_score or 0)
                    played[player_id] += 1

    return dict(points), dict(played)


def compute_standings(
    schedule: Schedule,
    roster: dict[PlayerId, NamedPlayer],
    selected_ids: Iterable[PlayerId],
) -> list[StandingRow]:
    """Leaderboard of every selected player, best first.

    Ties on points are ordered by name, case-insensitively.
    """
    points, played = tally_results(schedule)
    rows = []
    for player_id in selected_ids:
        player = roster[player_id]
        rows.append(
            StandingRow(
                player_id=player_id,
                name=player.name,
                gender=player.gender or Gender.MALE,
                points=points.get(player_id, 0),
                played=played.get(player_id, 0),
            )
        )
    return sorted(rows, key=lambda r: (-r.points, r.name.casefold(), r.name))


def create_standings_dataframe(rows: list[StandingRow]) -> pd.DataFrame:
    """Creates the standings table shown by the session page (rank from 1)."""
    df = pd.DataFrame(
        {
            "Player": [r.name for r in rows],
            "Gender": [Gender(r.gender).value for r in rows],
            "Points": [r.points for r in rows],
            "Played": [r.played for r in rows],
        },
        columns=["Player", "Gender", "Points", "Played"],
    )
    df.index += 1
    return df
