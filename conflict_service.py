"""
Detection of repeated partnerships across the rounds of a schedule.

Only doubles partnerships count; a singles half-pair has no partner.
The report is always derived from the schedule as it is now and never
stored on its own.
"""

import logging
from collections import defaultdict

from app_types import ConflictReport, PlayerId, PlayerPair, Schedule
from constants import CONFLICT_MESSAGE

logger = logging.getLogger("app.conflict_service")


def partnership_key(a: PlayerId, b: PlayerId) -> PlayerPair:
    """Order-independent key for a partnership."""
    return (a, b) if a <= b else (b, a)


def collect_partnerships(schedule: Schedule) -> dict[PlayerPair, list[int]]:
    """Maps each doubles partnership to the round numbers it is played in."""
    partnerships: dict[PlayerPair, list[int]] = defaultdict(list)
    for round_ in schedule:
        for game in round_.games:
            for pair in (game.pair_a, game.pair_b):
                if pair.p2 is None:
                    continue
                partnerships[partnership_key(pair.p1, pair.p2)].append(
                    round_.round_number
                )
    return dict(partnerships)


def detect_conflicts(schedule: Schedule) -> ConflictReport:
    """Flags every player in a partnership that occurs more than once.

    Args:
        schedule: The schedule to scan

    Returns:
        ConflictReport; its message is empty when nothing repeats.
    """
    repeated = {
        key: rounds
        for key, rounds in collect_partnerships(schedule).items()
        if len(rounds) > 1
    }
    if not repeated:
        return ConflictReport()

    conflicted = {pid for key in repeated for pid in key}
    logger.info(f"Detected {len(repeated)} repeated partnership(s)")
    return ConflictReport(
        player_ids=conflicted, repeated_pairs=repeated, message=CONFLICT_MESSAGE
    )
